from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field

from .base import BaseEntity, CamelModel, RecordId


class QuizDifficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class Quiz(BaseEntity):
    title: str
    description: Optional[str] = None
    category: str
    difficulty: QuizDifficulty = QuizDifficulty.EASY
    points: int = 0
    questions: List[str] = Field(default_factory=list, description="Question ids")
    is_active: bool = True


class QuizAnswer(CamelModel):
    question: str
    selected_answers: List[str] = Field(default_factory=list)
    is_correct: bool
    points: int = 0
    time_spent: int = Field(0, description="Seconds")


class UserQuiz(BaseEntity):
    """One attempt of a user at a quiz."""

    user: RecordId
    quiz: RecordId
    answers: List[QuizAnswer] = Field(default_factory=list)
    score: float = Field(..., ge=0, le=100)
    total_points: int = 0
    time_spent: int = Field(..., description="Seconds")
    is_completed: bool = False
    is_passed: bool = False
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
