"""Quiz and quiz attempt repositories"""

from typing import Dict, List, Optional

from storefront.database.collection_store import CollectionStore, record_key
from storefront.entities.quiz import Quiz, UserQuiz

from .base import BaseRepository


class QuizRepository(BaseRepository[Quiz]):
    def __init__(self, store: CollectionStore):
        super().__init__(store, "quizzes", Quiz)

    def list_active(
        self, category: Optional[str] = None, difficulty: Optional[str] = None
    ) -> List[Quiz]:
        """Active quizzes, newest first, optionally filtered."""

        def matches(doc) -> bool:
            if not doc.get("isActive", True):
                return False
            if category and doc.get("category") != category:
                return False
            if difficulty and doc.get("difficulty") != difficulty:
                return False
            return True

        return self.find_many(matches, sort_key=lambda doc: doc.get("createdAt") or "", reverse=True)

    def find_by_ids(self, quiz_ids: List[str]) -> Dict[str, Quiz]:
        wanted = set(quiz_ids)
        return {quiz.id: quiz for quiz in self.find_many(lambda doc: record_key(doc) in wanted)}


class UserQuizRepository(BaseRepository[UserQuiz]):
    def __init__(self, store: CollectionStore):
        super().__init__(store, "userquizzes", UserQuiz)

    def find_completed_by_user(
        self, user_id: str, skip: int = 0, limit: int = 10
    ) -> tuple[List[UserQuiz], int]:
        """Completed attempts of a user, most recently completed first."""
        return self.paginate(
            lambda doc: str(doc.get("user")) == str(user_id) and doc.get("isCompleted", False),
            sort_key=lambda doc: doc.get("completedAt") or "",
            reverse=True,
            skip=skip,
            limit=limit,
        )
