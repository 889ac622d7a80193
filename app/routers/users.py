from fastapi import APIRouter, Depends, Query

from app.core.config import Settings
from app.core.deps import get_settings_dep, get_user_store
from app.core.errors import NotFoundError
from app.models.history import ArtifactKind, HistoryBatch
from app.schemas.auth import UserHistoryOut
from app.services.history import HistorySnapshot
from app.services.user_store import UserStore, public_user

router = APIRouter(prefix="/api/user", tags=["users"])


def _load_user(store: UserStore, user_id: str) -> dict:
    user = store.find_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


@router.get("/{user_id}", response_model=UserHistoryOut)
def get_user(user_id: str, store: UserStore = Depends(get_user_store)):
    user = _load_user(store, user_id)
    return UserHistoryOut(
        **public_user(user),
        crashCourses=user.get(ArtifactKind.crash_courses.value) or [],
        summaries=user.get(ArtifactKind.summaries.value) or [],
    )


@router.get("/{user_id}/history/{kind}", response_model=HistoryBatch)
def list_history(
    user_id: str,
    kind: ArtifactKind,
    start: int = Query(default=0),
    limit: int | None = Query(default=None),
    store: UserStore = Depends(get_user_store),
    settings: Settings = Depends(get_settings_dep),
):
    snapshot = HistorySnapshot.from_user(_load_user(store, user_id))
    return snapshot.list_batch(kind, start, limit if limit is not None else settings.HISTORY_PAGE_SIZE)
