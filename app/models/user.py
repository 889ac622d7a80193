from typing import Any, Dict, List

from pydantic import BaseModel, Field


class User(BaseModel):
    """Enregistrement tel que persisté dans `{"users": [...]}`."""

    id: str = Field(..., description="user_NNN, suffixe croissant")
    username: str
    email: str
    password: str = Field(..., description="Hash bcrypt")
    createdAt: str
    profilePicture: str = ""
    # plus récent d'abord
    crashCourses: List[Dict[str, Any]] = Field(default_factory=list)
    summaries: List[Dict[str, Any]] = Field(default_factory=list)
