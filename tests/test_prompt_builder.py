import pytest

from app.core.config import get_settings
from app.core.errors import InputError
from app.models.crash_course import SUBTOPICS_PER_TOPIC
from app.services.chunk_planner import plan
from app.services.prompt_builder import STRICT_OUTPUT_LINE, build_crash_course_prompt, build_summary_prompt
from app.utils.schema_files import CRASH_COURSE_SCHEMA, load_output_schema


def test_crash_course_prompt_mentions_topic_and_subtopic_count():
    text = build_crash_course_prompt("  Binary Search ")
    assert "Generate a comprehensive crash course on: Binary Search" in text
    assert f"EXACTLY {SUBTOPICS_PER_TOPIC} subtopics" in text
    assert STRICT_OUTPUT_LINE in text


def test_crash_course_prompt_rejects_blank_topic():
    with pytest.raises(InputError):
        build_crash_course_prompt("   ")


def test_prompt_and_schema_agree_on_subtopic_count():
    schema = load_output_schema(get_settings().SCHEMAS_DIR, CRASH_COURSE_SCHEMA)
    subtopics = schema["properties"]["main_topics"]["items"]["properties"]["subtopics"]
    assert subtopics["minItems"] == subtopics["maxItems"] == SUBTOPICS_PER_TOPIC


def test_summary_prompt_per_page_labels():
    text = build_summary_prompt(3, plan(3))
    assert "total of 3 pages" in text
    assert "Page-by-Page Analysis" in text
    for label in ("1", "2", "3"):
        assert f'page_range "{label}"' in text
    assert text.count("EXACTLY 3 distinct") == 3
    assert "3 'key_findings'" in text
    assert STRICT_OUTPUT_LINE in text


def test_summary_prompt_grouped_labels():
    text = build_summary_prompt(41, plan(41))
    assert "chunks of 10 pages" in text
    assert 'page_range "1-10"' in text
    assert 'page_range "41-41"' in text
    assert text.index('"1-10"') < text.index('"11-20"')


def test_summary_prompt_appends_reader_instructions():
    text = build_summary_prompt(2, plan(2), extra_instructions="Focus on methods")
    assert "Additional instructions from the reader: Focus on methods" in text
