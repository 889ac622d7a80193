from typing import Optional

from pydantic import BaseModel, Field


class LoginIn(BaseModel):
    username: str = ""
    password: str = ""


class RegisterIn(BaseModel):
    username: str = ""
    email: str = ""
    password: str = ""
    profilePicture: Optional[str] = None


class UserOut(BaseModel):
    id: str
    username: str
    email: str
    profilePicture: str = ""


class AuthOut(BaseModel):
    success: bool = True
    user: UserOut


class UserHistoryOut(UserOut):
    crashCourses: list[dict] = Field(default_factory=list)
    summaries: list[dict] = Field(default_factory=list)
