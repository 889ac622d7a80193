from typing import List

from pydantic import BaseModel, Field, StrictStr

KEY_FINDINGS_COUNT = 3
POINTS_PER_SECTION = 3


class Section(BaseModel):
    page_range: StrictStr = Field(..., description="'7' (page seule) ou '21-40' (groupe)")
    summary_points: List[StrictStr] = Field(..., min_length=1)

    @property
    def is_grouped(self) -> bool:
        return "-" in self.page_range


class SummaryContent(BaseModel):
    document_title: StrictStr
    executive_summary: StrictStr
    key_findings: List[StrictStr] = Field(..., min_length=1)
    section_summaries: List[Section] = Field(..., min_length=1)


class StoredSummary(SummaryContent):
    id: str = Field(..., description="sum_<timestamp ms>")
    createdAt: str
    fileName: str
