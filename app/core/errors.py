"""
Taxonomie des erreurs du cœur.

Chaque erreur porte son statut HTTP ; `create_app()` les convertit en
enveloppe `{"error": "..."}` à la frontière.
"""
from typing import Any, Optional

from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
)


class AppError(Exception):
    status_code: int = HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InputError(AppError):
    status_code = HTTP_400_BAD_REQUEST


class CredentialsError(AppError):
    status_code = HTTP_401_UNAUTHORIZED


class NotFoundError(AppError):
    status_code = HTTP_404_NOT_FOUND


class ConflictError(AppError):
    status_code = HTTP_409_CONFLICT


class StorageError(AppError):
    pass


# ---------- backend génératif ----------

class UpstreamError(AppError):
    """Échec de transport vers le backend génératif."""


class UpstreamRejected(UpstreamError):
    def __init__(self, status: int, body: Any = None):
        super().__init__(f"Gemini API error ({status}): {body}")
        self.status = status
        self.body = body


class MalformedEnvelope(UpstreamError):
    """La réponse n'a pas la forme candidates[0].content.parts[0].text."""


class OutputValidationError(AppError):
    """Le texte renvoyé n'est pas une sortie structurée valide."""


class InvalidJson(OutputValidationError):
    pass


class SchemaViolation(OutputValidationError):
    pass


class GenerationExhausted(AppError):
    def __init__(self, attempts: int, last_error: Optional[AppError] = None):
        detail = f": {last_error.message}" if last_error else ""
        super().__init__(f"Generation failed after {attempts} attempts{detail}")
        self.attempts = attempts
        self.last_error = last_error
