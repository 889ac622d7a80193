"""
Validation structurelle des sorties du backend génératif.

Fonctions pures : aucune mutation, aucune exception. Un objet invalide
renvoie simplement False et l'appelant décide (retry ou erreur).
"""
import logging
from typing import Any, Type

from pydantic import BaseModel, ValidationError

from app.models.crash_course import CrashCourseContent
from app.models.summary import SummaryContent

logger = logging.getLogger(__name__)


def _conforms(model: Type[BaseModel], obj: Any) -> bool:
    if not isinstance(obj, dict):
        return False
    try:
        model.model_validate(obj)
    except ValidationError as e:
        logger.debug("%s rejeté: %s", model.__name__, e.errors(include_url=False))
        return False
    return True


def validate_crash_course(obj: Any) -> bool:
    return _conforms(CrashCourseContent, obj)


def validate_summary(obj: Any) -> bool:
    return _conforms(SummaryContent, obj)
