from typing import Optional

from pydantic import BaseModel


class CrashCourseIn(BaseModel):
    prompt: str = ""
    userId: Optional[str] = None


class DeleteOut(BaseModel):
    success: bool = True
