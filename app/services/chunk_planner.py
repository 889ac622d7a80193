from dataclasses import dataclass, field
from enum import Enum
from typing import List, Tuple

# Au-delà de ce nombre de pages, on regroupe
PER_PAGE_MAX = 20

# (pages max, taille de groupe), dans l'ordre croissant
GROUP_SIZE_STEPS: List[Tuple[int, int]] = [
    (40, 5),
    (75, 10),
    (150, 20),
    (300, 25),
]
LARGEST_GROUP_SIZE = 50


class ChunkMode(str, Enum):
    per_page = "per-page"
    grouped = "grouped"


@dataclass(frozen=True)
class ChunkPlan:
    mode: ChunkMode
    total_pages: int
    group_size: int
    ranges: List[Tuple[int, int]] = field(default_factory=list)

    def labels(self) -> List[str]:
        return [range_label(start, end, self.mode) for start, end in self.ranges]


def range_label(start: int, end: int, mode: ChunkMode) -> str:
    """'N' pour une page seule, 'A-B' en mode groupé (même si le dernier groupe fait 1 page)."""
    if mode is ChunkMode.per_page:
        return str(start)
    return f"{start}-{end}"


def group_size_for(total_pages: int) -> int:
    for max_pages, size in GROUP_SIZE_STEPS:
        if total_pages <= max_pages:
            return size
    return LARGEST_GROUP_SIZE


def plan(total_pages: int) -> ChunkPlan:
    """
    Découpe [1, total_pages] en plages contiguës, sans chevauchement, croissantes.
    - ≤ 20 pages : une plage par page
    - sinon : groupes de taille fixe (table par paliers), dernier groupe tronqué
    Un total ≤ 0 est traité comme 1 page.
    """
    total = max(int(total_pages or 0), 1)

    if total <= PER_PAGE_MAX:
        return ChunkPlan(
            mode=ChunkMode.per_page,
            total_pages=total,
            group_size=1,
            ranges=[(p, p) for p in range(1, total + 1)],
        )

    size = group_size_for(total)
    ranges = [(start, min(start + size - 1, total)) for start in range(1, total + 1, size)]
    return ChunkPlan(mode=ChunkMode.grouped, total_pages=total, group_size=size, ranges=ranges)
