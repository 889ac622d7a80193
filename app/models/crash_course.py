from typing import List, Tuple

from pydantic import BaseModel, Field, StrictStr

# Nombre fixe de sous-thèmes par thème : partagé par le prompt, le schéma et la validation
SUBTOPICS_PER_TOPIC = 3


class Subtopic(BaseModel):
    title: StrictStr = Field(..., description="≤10 mots")
    details: StrictStr = Field(..., description="≤70 mots")


class Topic(BaseModel):
    title: StrictStr
    description: StrictStr = Field(..., description="≤60 mots")
    subtopics: Tuple[Subtopic, Subtopic, Subtopic]


class CrashCourseContent(BaseModel):
    topic: StrictStr
    summary: StrictStr = Field(..., description="≤50 mots")
    overview: StrictStr = Field(..., description="≤80 mots")
    main_topics: List[Topic]
    conclusion: StrictStr = Field(..., description="≤40 mots")


class StoredCrashCourse(CrashCourseContent):
    id: str = Field(..., description="cc_<timestamp ms>")
    createdAt: str
