import json

import pytest
from fastapi.testclient import TestClient

from wiki_chat.api.app import create_app
from wiki_chat.domain.exceptions import ApiError, ConfigError
from wiki_chat.domain.models import ChatChoice, ChatMessage, ChatResult, ChatStreamChunk


class FakeProvider:
    name = "fake"

    def __init__(self, keywords="Marie Curie", deltas=("Marie ", "Curie"), error=None, stream_error=None):
        self._keywords = keywords
        self._deltas = deltas
        self._error = error
        self._stream_error = stream_error
        self.requests = []

    def chat(self, req):
        self.requests.append(req)
        if self._error:
            raise self._error
        msg = ChatMessage(role="assistant", content=self._keywords)
        return ChatResult(provider="fake", model=req.model, choices=[ChatChoice(index=0, message=msg)])

    def chat_stream(self, req):
        self.requests.append(req)
        for text in self._deltas:
            yield ChatStreamChunk(provider="fake", model=req.model, delta_text=text)
        if self._stream_error:
            raise self._stream_error


def _records(body):
    return [json.loads(r[len("data: "):]) for r in body.split("\n\n") if r.strip()]


def test_create_app_requires_config(cfg):
    cfg.llm_api_key = None
    cfg.port = None
    with pytest.raises(ConfigError) as exc:
        create_app(cfg, provider=FakeProvider())
    assert "PORT" in exc.value.message
    assert "LLM_API_KEY" in exc.value.message


def test_health(cfg):
    client = TestClient(create_app(cfg, provider=FakeProvider()))
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["timestamp"]


def test_extract_keywords(cfg):
    client = TestClient(create_app(cfg, provider=FakeProvider()))
    resp = client.post("/api/extract-keywords", json={"query": "Who was Marie Curie?"})
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "keywords": "Marie Curie", "error": None}


def test_extract_keywords_missing_query(cfg):
    client = TestClient(create_app(cfg, provider=FakeProvider()))
    resp = client.post("/api/extract-keywords", json={})
    assert resp.status_code == 400
    assert resp.json()["keywords"] == ""
    assert resp.json()["success"] is False


def test_extract_keywords_upstream_failure(cfg):
    provider = FakeProvider(error=ApiError(code="API_ERROR", message="upstream 500", http_status=500))
    client = TestClient(create_app(cfg, provider=provider))
    resp = client.post("/api/extract-keywords", json={"query": "Who was Marie Curie?"})
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "keywords": "Who was Marie Curie?", "error": "upstream 500"}


def test_chat_stream(cfg):
    client = TestClient(create_app(cfg, provider=FakeProvider()))
    article = {"title": "Marie Curie", "extract": "...", "url": "https://en.wikipedia.org/wiki/Marie_Curie"}
    resp = client.post("/api/chat/stream", json={"query": "Who was Marie Curie?", "articles": [article]})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/event-stream")
    assert resp.headers["cache-control"] == "no-cache"
    assert resp.headers["x-accel-buffering"] == "no"
    assert _records(resp.text) == [
        {"text": "Marie "},
        {"text": "Curie"},
        {"done": True, "articlesUsed": 1},
    ]


def test_chat_stream_upstream_error(cfg):
    provider = FakeProvider(stream_error=ApiError(code="overloaded_error", message="Overloaded", http_status=502))
    client = TestClient(create_app(cfg, provider=provider))
    resp = client.post("/api/chat/stream", json={"query": "q", "articles": []})
    records = _records(resp.text)
    assert records[-1] == {"error": "Overloaded"}
    assert all("done" not in r for r in records)


def test_chat_stream_missing_query(cfg):
    client = TestClient(create_app(cfg, provider=FakeProvider()))
    resp = client.post("/api/chat/stream", json={"articles": []})
    assert resp.status_code == 400
    assert resp.json()["code"] == "MISSING_QUERY"


def test_static_frontend_fallback(cfg, tmp_path):
    (tmp_path / "index.html").write_text("<html>app</html>", encoding="utf-8")
    (tmp_path / "app.js").write_text("console.log(1)", encoding="utf-8")
    cfg.static_dir = str(tmp_path)
    client = TestClient(create_app(cfg, provider=FakeProvider()))
    assert client.get("/app.js").text == "console.log(1)"
    assert client.get("/articles/42").text == "<html>app</html>"
    assert client.get("/health").json()["status"] == "ok"


def test_chat_stream_article_without_url(cfg):
    provider = FakeProvider()
    client = TestClient(create_app(cfg, provider=provider))
    article = {"title": "Marie Curie", "extract": "Physicist", "url": None}
    resp = client.post("/api/chat/stream", json={"query": "Who was Marie Curie?", "articles": [article]})
    assert _records(resp.text)[-1] == {"done": True, "articlesUsed": 1}
