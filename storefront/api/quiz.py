"""Quiz endpoints for signed-in users."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from storefront.database.collection_store import CollectionStore, get_store
from storefront.entities.user import User
from storefront.middleware.auth import get_current_user
from storefront.services.quiz_service import QuizService

router = APIRouter(prefix="/quiz", tags=["Quiz"])


@router.get("")
def list_quizzes(
    category: Optional[str] = Query(None),
    difficulty: Optional[str] = Query(None, pattern="^(easy|medium|hard)$"),
    store: CollectionStore = Depends(get_store),
    _user: User = Depends(get_current_user),
):
    """Active quizzes, newest first."""
    return {
        "success": True,
        "data": QuizService(store).list_quizzes(category=category, difficulty=difficulty),
    }


@router.get("/user/history")
def get_user_history(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    store: CollectionStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    """Completed quiz attempts of the current user."""
    return {
        "success": True,
        "data": QuizService(store).user_history(user.id, page=page, limit=limit),
    }
