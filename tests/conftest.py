import io
import json

import httpx
import pytest
from fastapi.testclient import TestClient
from pypdf import PdfWriter

from app.core.config import get_settings
from app.core.deps import get_generation_client
from app.main import create_app
from app.services.generation import GenerationClient


def make_crash_course(topic: str = "Binary Search", n_subtopics: int = 3, n_topics: int = 2) -> dict:
    return {
        "topic": topic,
        "summary": f"{topic} in a nutshell.",
        "overview": "What we will cover.",
        "main_topics": [
            {
                "title": f"Topic {t}",
                "description": "A short description.",
                "subtopics": [
                    {"title": f"Sub {t}.{s}", "details": "Some details."}
                    for s in range(1, n_subtopics + 1)
                ],
            }
            for t in range(1, n_topics + 1)
        ],
        "conclusion": "That's it.",
    }


def make_summary(labels=("1", "2")) -> dict:
    return {
        "document_title": "Test document",
        "executive_summary": "A document about tests.",
        "key_findings": ["one", "two", "three"],
        "section_summaries": [
            {"page_range": label, "summary_points": ["a", "b", "c"]} for label in labels
        ],
    }


def envelope(payload, raw: bool = False) -> dict:
    text = payload if raw else json.dumps(payload)
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


def make_pdf(pages: int = 2) -> bytes:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=612, height=792)
    buf = io.BytesIO()
    writer.write(buf)
    return buf.getvalue()


class FakeGemini:
    """
    Backend Gemini simulé (httpx.MockTransport) : réponses en file, requêtes enregistrées.
    """

    def __init__(self):
        self.generate_responses = []
        self.total_tokens = 1234
        self.requests = []

    def queue(self, payload, status: int = 200, raw: bool = False):
        body = envelope(payload, raw=raw) if status < 400 else payload
        self.generate_responses.append(httpx.Response(status, json=body))

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content or b"{}")
        self.requests.append((request.url.path, body))
        if request.url.path.endswith(":countTokens"):
            return httpx.Response(200, json={"totalTokens": self.total_tokens})
        if not self.generate_responses:
            return httpx.Response(500, json={"error": {"message": "no canned response"}})
        return self.generate_responses.pop(0)

    def client(self, **kw) -> GenerationClient:
        return GenerationClient(api_key="test-key", transport=httpx.MockTransport(self.handler), **kw)


@pytest.fixture
def gemini():
    return FakeGemini()


@pytest.fixture
def users_path(tmp_path):
    return tmp_path / "data" / "users.json"


@pytest.fixture
def test_client(users_path, monkeypatch, gemini):
    """
    Crée un TestClient avec un USERS_PATH temporaire (isolé) et un backend Gemini simulé.
    """
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setenv("APP_NAME", "CRAMKIT API (tests)")
    monkeypatch.setenv("USERS_PATH", str(users_path))
    monkeypatch.setenv("MAX_UPLOAD_MB", "1")  # limite faible pour tests
    monkeypatch.setenv("TOKEN_LIMIT", "5000")
    monkeypatch.setenv("CORS_ORIGINS", "http://localhost")

    # IMPORTANT: vider le cache des settings pour prendre en compte les env
    get_settings.cache_clear()

    app = create_app()
    app.dependency_overrides[get_generation_client] = lambda: gemini.client()
    with TestClient(app) as client:
        yield client

    get_settings.cache_clear()


@pytest.fixture
def registered_user(test_client):
    r = test_client.post(
        "/api/register",
        json={"username": "alice", "email": "alice@example.com", "password": "s3cret!"},
    )
    assert r.status_code == 200, r.text
    return r.json()["user"]
