import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from starlette.concurrency import run_in_threadpool

from app.core.config import Settings
from app.core.deps import get_generation_client, get_settings_dep, get_user_store
from app.core.errors import InputError, NotFoundError
from app.models.files import TokenCountResponse
from app.models.history import ArtifactKind
from app.models.summary import StoredSummary, SummaryContent
from app.schemas.generation import DeleteOut
from app.services.chunk_planner import plan
from app.services.generation import GenerationClient
from app.services.prompt_builder import build_summary_prompt
from app.services.schema_validator import validate_summary
from app.services.user_store import UserStore, utcnow_iso
from app.utils.pdf_extract import PdfDocument, extract_pdf
from app.utils.schema_files import SUMMARY_SCHEMA, load_output_schema

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/summary", tags=["summary"])
KIND = ArtifactKind.summaries


async def _read_pdf(pdf: Optional[UploadFile], settings: Settings) -> PdfDocument:
    """
    Contrôles d'entrée dans l'ordre : présence, type, taille brute, puis extraction.
    """
    if pdf is None:
        raise InputError("No PDF file uploaded")

    name = (pdf.filename or "").lower()
    if not name.endswith(".pdf") and pdf.content_type != "application/pdf":
        raise InputError("Only PDF files are accepted")

    contents = await pdf.read()
    if not contents:
        raise InputError("No PDF file uploaded")

    max_bytes = settings.MAX_UPLOAD_MB * 1024 * 1024
    if len(contents) > max_bytes:
        raise InputError(f"File too large (max {settings.MAX_UPLOAD_MB} MB)")

    return await run_in_threadpool(extract_pdf, contents)


@router.post("/token-count", response_model=TokenCountResponse)
async def token_count(
    pdf: Optional[UploadFile] = File(default=None),
    client: GenerationClient = Depends(get_generation_client),
    settings: Settings = Depends(get_settings_dep),
):
    doc = await _read_pdf(pdf, settings)
    total = await client.count_tokens(doc.text)
    return TokenCountResponse(
        totalTokens=total,
        pageCount=doc.page_count,
        textLength=len(doc.text),
        tokenLimit=settings.TOKEN_LIMIT,
        withinLimit=total <= settings.TOKEN_LIMIT,
    )


@router.post("")
async def create_summary(
    pdf: Optional[UploadFile] = File(default=None),
    prompt: str = Form(default=""),
    userId: Optional[str] = Form(default=None),
    store: UserStore = Depends(get_user_store),
    client: GenerationClient = Depends(get_generation_client),
    settings: Settings = Depends(get_settings_dep),
):
    """
    Résume un PDF par plages de pages et renvoie l'enveloppe du backend.
    `prompt` complète les consignes générées à partir du plan de découpage.
    """
    if pdf is None:
        raise InputError("No PDF file uploaded")
    if not prompt or not prompt.strip():
        raise InputError("No prompt provided")

    doc = await _read_pdf(pdf, settings)

    if userId and await run_in_threadpool(store.find_by_id, userId) is None:
        raise NotFoundError("User not found")

    # plafond de tokens vérifié avant la génération (aller-retour distinct)
    total_tokens = await client.count_tokens(doc.text)
    if total_tokens > settings.TOKEN_LIMIT:
        raise InputError(
            f"Document too large: {total_tokens} tokens (limit {settings.TOKEN_LIMIT})"
        )

    chunk_plan = plan(doc.page_count)
    logger.info(
        "Résumé de %s: %d pages, mode=%s, %d plages",
        pdf.filename, chunk_plan.total_pages, chunk_plan.mode.value, len(chunk_plan.ranges),
    )

    schema = load_output_schema(settings.SCHEMAS_DIR, SUMMARY_SCHEMA)
    result = await client.generate(
        build_summary_prompt(chunk_plan.total_pages, chunk_plan, extra_instructions=prompt),
        schema=schema,
        validator=validate_summary,
        source_text=doc.text,
    )

    if userId:
        content = SummaryContent.model_validate(result.data)
        summary = StoredSummary(
            id="",
            createdAt=utcnow_iso(),
            fileName=pdf.filename or "document.pdf",
            **content.model_dump(),
        )
        await run_in_threadpool(store.add_artifact, userId, KIND, summary.model_dump(mode="json"))

    return result.envelope


@router.get("/user/{user_id}")
def list_summaries(user_id: str, store: UserStore = Depends(get_user_store)):
    return {"summaries": store.list_artifacts(user_id, KIND)}


@router.delete("/user/{user_id}/{summary_id}", response_model=DeleteOut)
def delete_summary(user_id: str, summary_id: str, store: UserStore = Depends(get_user_store)):
    if not store.remove_artifact(user_id, KIND, summary_id):
        raise NotFoundError("Summary not found")
    return DeleteOut()
