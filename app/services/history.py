import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from app.core.errors import InputError
from app.models.history import ArtifactKind, HistoryBatch

logger = logging.getLogger(__name__)


@dataclass
class HistorySnapshot:
    """
    Instantané des artefacts d'un utilisateur, pris une fois puis paginé
    sans relire le stockage. Objet de session explicite : un par navigation.
    """

    user_id: str
    items: Dict[ArtifactKind, List[Dict[str, Any]]] = field(default_factory=dict)

    @classmethod
    def from_user(cls, user: Dict[str, Any]) -> "HistorySnapshot":
        return cls(
            user_id=user["id"],
            items={kind: list(user.get(kind.value) or []) for kind in ArtifactKind},
        )

    def list_batch(self, kind: ArtifactKind, start_index: int, limit: int) -> HistoryBatch:
        """Tranche [start_index, start_index + limit) dans l'ordre stocké (plus récent d'abord)."""
        if start_index < 0:
            raise InputError("start must be >= 0")
        if limit < 1:
            raise InputError("limit must be >= 1")

        all_items = self.items.get(kind, [])
        total = len(all_items)
        return HistoryBatch(
            items=all_items[start_index:start_index + limit],
            hasMore=start_index + limit < total,
            total=total,
        )
