from pydantic import BaseModel, Field


class TokenCountResponse(BaseModel):
    totalTokens: int = Field(..., ge=0, description="Estimation Gemini countTokens")
    pageCount: int = Field(..., ge=0, description="Nombre de pages détectées")
    textLength: int = Field(..., ge=0, description="Longueur du texte extrait")
    tokenLimit: int
    withinLimit: bool
