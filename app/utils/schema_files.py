import json
from pathlib import Path
from typing import Any, Dict

from app.core.errors import StorageError

CRASH_COURSE_SCHEMA = "crash_course.json"
SUMMARY_SCHEMA = "summary.json"


def load_output_schema(schemas_dir: str, name: str) -> Dict[str, Any]:
    """
    Charge un schéma de réponse (format responseSchema de Gemini).
    Relu à chaque requête : une édition du fichier prend effet sans redémarrage.
    """
    path = Path(schemas_dir) / name
    try:
        schema = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise StorageError(f"Schéma illisible ({path}): {e}") from e

    if not isinstance(schema, dict):
        raise StorageError(f"Schéma invalide ({path}): objet JSON attendu")
    return schema
