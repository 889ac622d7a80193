import logging

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from app.core.config import Settings
from app.core.deps import get_generation_client, get_settings_dep, get_user_store
from app.core.errors import InputError, NotFoundError
from app.models.crash_course import CrashCourseContent, StoredCrashCourse
from app.models.history import ArtifactKind
from app.schemas.generation import CrashCourseIn, DeleteOut
from app.services.generation import GenerationClient
from app.services.prompt_builder import build_crash_course_prompt
from app.services.schema_validator import validate_crash_course
from app.services.user_store import UserStore, utcnow_iso
from app.utils.schema_files import CRASH_COURSE_SCHEMA, load_output_schema

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/crash-course", tags=["crash-course"])
KIND = ArtifactKind.crash_courses


@router.post("")
async def create_crash_course(
    body: CrashCourseIn,
    store: UserStore = Depends(get_user_store),
    client: GenerationClient = Depends(get_generation_client),
    settings: Settings = Depends(get_settings_dep),
):
    """
    Génère un crash course sur le sujet `prompt` et renvoie l'enveloppe du backend.
    Si `userId` est fourni, le cours est enregistré en tête de son historique.
    """
    if not body.prompt or not body.prompt.strip():
        raise InputError("No prompt provided")

    if body.userId and await run_in_threadpool(store.find_by_id, body.userId) is None:
        raise NotFoundError("User not found")

    schema = load_output_schema(settings.SCHEMAS_DIR, CRASH_COURSE_SCHEMA)
    result = await client.generate(
        build_crash_course_prompt(body.prompt),
        schema=schema,
        validator=validate_crash_course,
    )

    # écriture uniquement après une génération valide
    if body.userId:
        # champs serveur (id, createdAt) posés après validation, jamais repris du backend
        content = CrashCourseContent.model_validate(result.data)
        course = StoredCrashCourse(id="", createdAt=utcnow_iso(), **content.model_dump())
        await run_in_threadpool(store.add_artifact, body.userId, KIND, course.model_dump(mode="json"))

    return result.envelope


@router.get("/user/{user_id}")
def list_crash_courses(user_id: str, store: UserStore = Depends(get_user_store)):
    return {"crashCourses": store.list_artifacts(user_id, KIND)}


@router.delete("/user/{user_id}/{course_id}", response_model=DeleteOut)
def delete_crash_course(user_id: str, course_id: str, store: UserStore = Depends(get_user_store)):
    if not store.remove_artifact(user_id, KIND, course_id):
        raise NotFoundError("Crash course not found")
    return DeleteOut()
