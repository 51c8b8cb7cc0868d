"""
Learner store models.

SQLAlchemy models backing the scheduler's persistence collaborator:
- Topics and the prerequisite association table
- Questions
- Attempts (append-only)
- Topic mastery (one row per practiced topic)
- Review queue (one row per practiced topic)
- Study sessions and their ordered questions
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from study_scheduler.core.enums import (
    Difficulty,
    ErrorType,
    MasteryStage,
    Section,
    SessionStatus,
    SessionType,
)


class Base(DeclarativeBase):
    pass


topic_prerequisites = Table(
    "topic_prerequisites",
    Base.metadata,
    Column("topic_id", ForeignKey("topics.id", ondelete="CASCADE"), primary_key=True),
    Column("prerequisite_id", ForeignKey("topics.id", ondelete="CASCADE"), primary_key=True),
)


class TopicRow(Base):
    __tablename__ = "topics"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    section: Mapped[Section] = mapped_column(Enum(Section), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)

    prerequisites: Mapped[list[TopicRow]] = relationship(
        secondary=topic_prerequisites,
        primaryjoin=lambda: TopicRow.id == topic_prerequisites.c.topic_id,
        secondaryjoin=lambda: TopicRow.id == topic_prerequisites.c.prerequisite_id,
        back_populates="unlocks",
    )
    unlocks: Mapped[list[TopicRow]] = relationship(
        secondary=topic_prerequisites,
        primaryjoin=lambda: TopicRow.id == topic_prerequisites.c.prerequisite_id,
        secondaryjoin=lambda: TopicRow.id == topic_prerequisites.c.topic_id,
        back_populates="prerequisites",
    )

    def __repr__(self) -> str:
        return f"<TopicRow {self.id} section={self.section.value}>"


class QuestionRow(Base):
    __tablename__ = "questions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    topic_id: Mapped[str] = mapped_column(ForeignKey("topics.id"), nullable=False, index=True)
    difficulty: Mapped[Difficulty] = mapped_column(Enum(Difficulty), nullable=False)
    stem: Mapped[str | None] = mapped_column(Text)

    __table_args__ = (Index("idx_questions_topic_difficulty", "topic_id", "difficulty"),)


class AttemptRow(Base):
    """Append-only attempt log; the sole input to rolling accuracy."""

    __tablename__ = "attempts"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    question_id: Mapped[str] = mapped_column(ForeignKey("questions.id"), nullable=False)
    topic_id: Mapped[str] = mapped_column(ForeignKey("topics.id"), nullable=False)
    is_correct: Mapped[bool] = mapped_column(Boolean, nullable=False)
    time_spent_ms: Mapped[int] = mapped_column(Integer, default=0)
    error_type: Mapped[ErrorType | None] = mapped_column(Enum(ErrorType))
    support_level: Mapped[int] = mapped_column(Integer, default=1)
    hints_used: Mapped[int] = mapped_column(Integer, default=0)
    session_id: Mapped[str | None] = mapped_column(
        ForeignKey("study_sessions.id", ondelete="SET NULL"), index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (Index("idx_attempts_topic_created", "topic_id", "created_at"),)


class TopicMasteryRow(Base):
    __tablename__ = "topic_mastery"

    topic_id: Mapped[str] = mapped_column(ForeignKey("topics.id"), primary_key=True)
    level: Mapped[float] = mapped_column(Float, default=0.0)
    stage: Mapped[MasteryStage] = mapped_column(Enum(MasteryStage), default=MasteryStage.UNKNOWN)
    practice_count: Mapped[int] = mapped_column(Integer, default=0)
    accuracy_7d: Mapped[float] = mapped_column(Float, default=0.0)
    accuracy_30d: Mapped[float] = mapped_column(Float, default=0.0)
    avg_time_ms: Mapped[int] = mapped_column(Integer, default=0)
    stability_factor: Mapped[float] = mapped_column(Float, default=1.0)
    last_practiced_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    next_review_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))


class ReviewQueueRow(Base):
    __tablename__ = "review_queue"

    topic_id: Mapped[str] = mapped_column(ForeignKey("topics.id"), primary_key=True)
    scheduled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    interval_ms: Mapped[int] = mapped_column(BigInteger, nullable=False)
    urgency: Mapped[float] = mapped_column(Float, default=0.0)


class StudySessionRow(Base):
    __tablename__ = "study_sessions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    session_type: Mapped[SessionType] = mapped_column(Enum(SessionType), nullable=False)
    section: Mapped[Section | None] = mapped_column(Enum(Section))
    difficulty: Mapped[Difficulty | None] = mapped_column(Enum(Difficulty))
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False)
    time_limit_ms: Mapped[int | None] = mapped_column(Integer)
    status: Mapped[SessionStatus] = mapped_column(
        Enum(SessionStatus), default=SessionStatus.IN_PROGRESS
    )
    correct_count: Mapped[int] = mapped_column(Integer, default=0)
    total_time_ms: Mapped[int] = mapped_column(BigInteger, default=0)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    finished_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    questions: Mapped[list[SessionQuestionRow]] = relationship(
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="SessionQuestionRow.order_index",
    )

    def __repr__(self) -> str:
        return f"<StudySessionRow {self.id} status={self.status.value}>"


class SessionQuestionRow(Base):
    __tablename__ = "session_questions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[str] = mapped_column(
        ForeignKey("study_sessions.id", ondelete="CASCADE"), nullable=False
    )
    question_id: Mapped[str] = mapped_column(ForeignKey("questions.id"), nullable=False)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False)

    session: Mapped[StudySessionRow] = relationship(back_populates="questions")

    __table_args__ = (
        UniqueConstraint("session_id", "question_id", name="uq_session_question"),
        UniqueConstraint("session_id", "order_index", name="uq_session_order"),
    )
