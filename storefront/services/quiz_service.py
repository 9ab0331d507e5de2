"""Quiz listing and per-user quiz history."""

from __future__ import annotations

import math
from typing import Any, Dict, List, Optional

from storefront.database.collection_store import CollectionStore
from storefront.repositories.quiz import QuizRepository, UserQuizRepository

QUIZ_SUMMARY_FIELDS = {"id", "title", "category", "difficulty", "points"}


def with_id(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Add a plain ``id`` next to ``_id`` for API consumers."""
    if "_id" in doc:
        doc["id"] = str(doc["_id"])
    return doc


class QuizService:
    def __init__(self, store: CollectionStore):
        self.quiz_repo = QuizRepository(store)
        self.user_quiz_repo = UserQuizRepository(store)

    def list_quizzes(
        self, category: Optional[str] = None, difficulty: Optional[str] = None
    ) -> Dict[str, Any]:
        quizzes = self.quiz_repo.list_active(category=category, difficulty=difficulty)
        return {"quizzes": [with_id(quiz.to_document()) for quiz in quizzes]}

    def user_history(self, user_id: str, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        """Completed attempts of a user, newest first, with a quiz summary embedded."""
        page = max(page, 1)
        limit = max(limit, 1)
        attempts, total = self.user_quiz_repo.find_completed_by_user(
            user_id, skip=(page - 1) * limit, limit=limit
        )
        quizzes = self.quiz_repo.find_by_ids([attempt.quiz for attempt in attempts])

        items: List[Dict[str, Any]] = []
        for attempt in attempts:
            doc = with_id(attempt.to_document())
            quiz = quizzes.get(attempt.quiz)
            if quiz:
                summary = with_id(quiz.to_document())
                doc["quiz"] = {k: v for k, v in summary.items() if k in QUIZ_SUMMARY_FIELDS | {"_id"}}
            items.append(doc)

        return {
            "userQuizzes": items,
            "pagination": {
                "current": page,
                "pages": math.ceil(total / limit),
                "total": total,
            },
        }
