"""
Rendu des instructions envoyées au backend génératif.

Le texte est indicatif : la structure est imposée par le schéma de réponse.
Les cardinalités citées ici viennent des mêmes constantes que le schéma
et la validation.
"""
from typing import Optional

from app.core.errors import InputError
from app.models.crash_course import SUBTOPICS_PER_TOPIC
from app.models.summary import KEY_FINDINGS_COUNT, POINTS_PER_SECTION
from app.services.chunk_planner import ChunkMode, ChunkPlan

STRICT_OUTPUT_LINE = "Return the output STRICTLY in the provided JSON schema format."


def build_crash_course_prompt(topic: str) -> str:
    topic = (topic or "").strip()
    if not topic:
        raise InputError("No prompt provided")

    return "\n".join([
        f"Generate a comprehensive crash course on: {topic}",
        "",
        "Guidelines:",
        "- Provide a concise summary (≤50 words) that captures the essence of the topic.",
        "- Include an overview (≤80 words) explaining what will be covered.",
        "- Create multiple main topics, each with a description (≤60 words).",
        f"- For each main topic, include EXACTLY {SUBTOPICS_PER_TOPIC} subtopics:",
        "  * Each subtopic title should be ≤10 words",
        "  * Each subtopic details should be ≤70 words",
        "- End with a conclusion (≤40 words) that ties everything together.",
        "",
        "Make the content educational, clear, and easy to understand for someone "
        "learning this topic for the first time.",
        STRICT_OUTPUT_LINE,
    ])


def build_summary_prompt(total_pages: int, chunk_plan: ChunkPlan, extra_instructions: Optional[str] = None) -> str:
    lines = [
        f"Analyze the attached PDF, which has a total of {total_pages} pages.",
        "",
        "1. **Global Analysis:** Provide the 'document_title', 'executive_summary', "
        f"and {KEY_FINDINGS_COUNT} 'key_findings'.",
    ]

    if chunk_plan.mode is ChunkMode.per_page:
        lines.append(
            "2. **Page-by-Page Analysis:** For the 'section_summaries' array, "
            "provide a summary for EACH individual page, in this order:"
        )
    else:
        lines.append(
            "2. **Section Analysis:** For the 'section_summaries' array, group the content "
            f"into chunks of {chunk_plan.group_size} pages each, in this order:"
        )

    for (start, end), label in zip(chunk_plan.ranges, chunk_plan.labels()):
        scope = f"page {start}" if chunk_plan.mode is ChunkMode.per_page else f"pages {start} to {end}"
        lines.append(
            f"   * {scope}: use page_range \"{label}\" and provide "
            f"**EXACTLY {POINTS_PER_SECTION} distinct, concise bullet points**."
        )

    if chunk_plan.mode is ChunkMode.per_page:
        lines.append(
            "   * If a page is a title page, table of contents, or mostly empty, "
            "still include it but note this in the summary points."
        )

    if extra_instructions and extra_instructions.strip():
        lines += ["", f"Additional instructions from the reader: {extra_instructions.strip()}"]

    lines += [
        "",
        STRICT_OUTPUT_LINE,
        "Be thorough, accurate, and concise in your summaries.",
    ]
    return "\n".join(lines)
