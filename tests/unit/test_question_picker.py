"""
Unit tests for question picking.

Uses the in-memory bank picker; the SQL picker shares the same selection
function and is covered in the integration suite.
"""

from datetime import timedelta

from conftest import make_attempt

from study_scheduler.core.enums import Difficulty
from study_scheduler.quiz.question_picker import BankQuestionPicker, choose_question


def picker(questions, attempts, now):
    return BankQuestionPicker(questions, attempts, now)


class TestChooseQuestion:
    def test_prefers_unattempted(self, question_bank, now):
        attempts = [
            make_attempt("algebra", False, now - timedelta(days=1), question_id="algebra-medium-1")
        ]
        chosen = picker(question_bank, attempts, now).pick_question("algebra", Difficulty.MEDIUM)
        assert chosen == "algebra-medium-2"

    def test_skips_recent_correct(self, question_bank, now):
        attempts = [
            make_attempt("algebra", True, now - timedelta(hours=1), question_id="algebra-medium-1"),
            make_attempt("algebra", True, now - timedelta(days=3), question_id="algebra-medium-2"),
        ]
        chosen = picker(question_bank, attempts, now).pick_question("algebra", Difficulty.MEDIUM)
        assert chosen == "algebra-medium-2"

    def test_incorrect_with_fewest_attempts_first(self, question_bank, now):
        attempts = [
            make_attempt("algebra", False, now - timedelta(days=5), question_id="algebra-medium-1"),
            make_attempt("algebra", False, now - timedelta(days=4), question_id="algebra-medium-1"),
            make_attempt("algebra", False, now - timedelta(days=3), question_id="algebra-medium-2"),
        ]
        chosen = picker(question_bank, attempts, now).pick_question("algebra", Difficulty.MEDIUM)
        assert chosen == "algebra-medium-2"

    def test_steps_down_when_level_exhausted(self, question_bank, now):
        attempts = [
            make_attempt("algebra", True, now - timedelta(hours=2), question_id="algebra-hard-1"),
            make_attempt("algebra", True, now - timedelta(hours=3), question_id="algebra-hard-2"),
        ]
        chosen = picker(question_bank, attempts, now).pick_question("algebra", Difficulty.HARD)
        assert chosen == "algebra-medium-1"

    def test_never_steps_up(self, question_bank, now):
        chosen = picker(question_bank, [], now).pick_question(
            "algebra", Difficulty.EASY, exclude_ids=["algebra-easy-1", "algebra-easy-2"]
        )
        assert chosen is None

    def test_exclude_ids(self, question_bank, now):
        chosen = picker(question_bank, [], now).pick_question(
            "algebra", Difficulty.EASY, exclude_ids=["algebra-easy-1"]
        )
        assert chosen == "algebra-easy-2"

    def test_other_topics_ignored(self, question_bank, now):
        chosen = choose_question(question_bank, [], "geometry", Difficulty.EASY, now)
        assert chosen.startswith("geometry-")

    def test_unknown_topic(self, question_bank, now):
        assert choose_question(question_bank, [], "calculus", Difficulty.HARD, now) is None

    def test_recent_window_is_configurable(self, question_bank, now):
        attempts = [
            make_attempt("algebra", True, now - timedelta(hours=5), question_id="algebra-easy-1"),
            make_attempt("algebra", True, now - timedelta(hours=5), question_id="algebra-easy-2"),
        ]
        args = (question_bank, attempts, "algebra", Difficulty.EASY, now)

        assert choose_question(*args) is None
        assert choose_question(*args, recent_window=timedelta(hours=4)) == "algebra-easy-1"
