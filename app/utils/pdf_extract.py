import io
import logging
from dataclasses import dataclass

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from app.core.errors import InputError

logger = logging.getLogger(__name__)


@dataclass
class PdfDocument:
    text: str
    page_count: int


def extract_pdf(data: bytes) -> PdfDocument:
    """
    Extrait le texte (pages jointes par des sauts de ligne) et le nombre de pages.
    Un PDF illisible est une erreur d'entrée (400).
    """
    if not data:
        raise InputError("No PDF file uploaded")

    try:
        reader = PdfReader(io.BytesIO(data))
        text_parts = [page.extract_text() or "" for page in reader.pages]
    except (PyPdfError, ValueError, OSError) as e:
        logger.warning("PDF illisible: %s", e)
        raise InputError(f"Unreadable PDF: {e}") from e

    return PdfDocument(text="\n".join(text_parts), page_count=len(text_parts))
