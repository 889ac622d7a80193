from enum import Enum
from typing import Any, Dict, List

from pydantic import BaseModel


class ArtifactKind(str, Enum):
    crash_courses = "crashCourses"
    summaries = "summaries"

    @property
    def id_prefix(self) -> str:
        return "cc" if self is ArtifactKind.crash_courses else "sum"


class HistoryBatch(BaseModel):
    items: List[Dict[str, Any]]
    hasMore: bool
    total: int
