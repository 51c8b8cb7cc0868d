"""Unit tests for difficulty calibration and the ordered difficulty enum."""

import pytest

from study_scheduler.core.enums import Difficulty
from study_scheduler.study.difficulty_calibrator import recommend_difficulty


class TestRecommendDifficulty:
    def test_high_accuracy_steps_up(self):
        rec = recommend_difficulty(Difficulty.MEDIUM, 0.92, 10)
        assert rec.recommended is Difficulty.HARD
        assert rec.in_optimal_zone is False
        assert "92%" in rec.reason

    def test_low_accuracy_steps_down(self):
        rec = recommend_difficulty(Difficulty.MEDIUM, 0.55, 10)
        assert rec.recommended is Difficulty.EASY
        assert rec.in_optimal_zone is False

    def test_hardest_stays_put(self):
        rec = recommend_difficulty(Difficulty.HARD, 0.95, 10)
        assert rec.recommended is Difficulty.HARD
        assert rec.in_optimal_zone is False
        assert "advancing topics" in rec.reason

    def test_easiest_stays_put(self):
        rec = recommend_difficulty(Difficulty.EASY, 0.2, 10)
        assert rec.recommended is Difficulty.EASY
        assert rec.in_optimal_zone is False
        assert "prerequisite" in rec.reason

    @pytest.mark.parametrize("accuracy", [0.70, 0.78, 0.85])
    def test_optimal_band_is_inclusive(self, accuracy):
        rec = recommend_difficulty(Difficulty.MEDIUM, accuracy, 10)
        assert rec.recommended is Difficulty.MEDIUM
        assert rec.in_optimal_zone is True

    def test_not_enough_practice(self):
        rec = recommend_difficulty(Difficulty.MEDIUM, 0.1, 4)
        assert rec.recommended is Difficulty.MEDIUM
        assert rec.in_optimal_zone is True
        assert "Not enough data" in rec.reason

    def test_custom_band(self):
        rec = recommend_difficulty(Difficulty.EASY, 0.8, 10, accuracy_min=0.5, accuracy_max=0.75)
        assert rec.recommended is Difficulty.MEDIUM


class TestDifficultyOrdering:
    def test_step_functions(self):
        assert Difficulty.EASY.harder() is Difficulty.MEDIUM
        assert Difficulty.HARD.harder() is Difficulty.HARD
        assert Difficulty.HARD.easier() is Difficulty.MEDIUM
        assert Difficulty.EASY.easier() is Difficulty.EASY

    def test_fallbacks_never_step_up(self):
        assert Difficulty.HARD.fallbacks() == [Difficulty.HARD, Difficulty.MEDIUM, Difficulty.EASY]
        assert Difficulty.EASY.fallbacks() == [Difficulty.EASY]
