import pytest

from wiki_chat.domain.articles import Article
from wiki_chat.domain.events import Done, Error, TextDelta
from wiki_chat.domain.exceptions import ApiError, NetworkError, ValidationError
from wiki_chat.domain.models import ChatChoice, ChatMessage, ChatResult, ChatStreamChunk
from wiki_chat.prompts import build_answer_prompt, build_keywords_prompt
from wiki_chat.relay.answer import AnswerRelay
from wiki_chat.relay.keywords import KeywordExtractor


CURIE = Article(
    title="Marie Curie",
    extract="Marie Curie was a physicist and chemist who conducted pioneering research on radioactivity.",
    url="https://en.wikipedia.org/wiki/Marie_Curie",
)


class FakeProvider:
    name = "fake"

    def __init__(self, text="Marie Curie", deltas=("Marie ", "Curie ", "was a physicist."), fail_after=None, error=None):
        self._text = text
        self._deltas = list(deltas)
        self._fail_after = fail_after
        self._error = error
        self.requests = []

    def chat(self, req):
        self.requests.append(req)
        if self._error is not None:
            raise self._error
        msg = ChatMessage(role="assistant", content=self._text)
        return ChatResult(provider="fake", model=req.model, choices=[ChatChoice(index=0, message=msg)])

    def chat_stream(self, req):
        self.requests.append(req)
        for i, text in enumerate(self._deltas):
            if self._fail_after is not None and i == self._fail_after:
                raise self._error
            yield ChatStreamChunk(provider="fake", model=req.model, delta_text=text)
        yield ChatStreamChunk(provider="fake", model=req.model, finish_reason="end_turn")


def test_keywords_success(cfg):
    provider = FakeProvider(text="  Marie Curie\n")
    keywords, error = KeywordExtractor(provider, cfg).extract("Who was Marie Curie?")
    assert keywords == "Marie Curie"
    assert error is None
    req = provider.requests[0]
    assert req.model == "keywords"
    assert req.max_tokens == 100
    assert 'Question: "Who was Marie Curie?"' in req.messages[0].content


def test_keywords_upstream_failure_falls_back(cfg):
    provider = FakeProvider(error=ApiError(code="API_ERROR", message="Internal Server Error", http_status=500))
    extractor = KeywordExtractor(provider, cfg)
    keywords, error = extractor.extract("Who was Marie Curie?")
    assert keywords == "Who was Marie Curie?"
    assert error == "Internal Server Error"
    assert extractor.extract_keywords("Who was Marie Curie?") == "Who was Marie Curie?"


def test_keywords_empty_completion_falls_back(cfg):
    provider = FakeProvider(text="   ")
    assert KeywordExtractor(provider, cfg).extract_keywords("Who was Marie Curie?") == "Who was Marie Curie?"


def test_keywords_network_failure_falls_back(cfg):
    provider = FakeProvider(error=NetworkError(code="NETWORK_ERROR", message="timed out"))
    assert KeywordExtractor(provider, cfg).extract_keywords("  Apollo 11  ") == "Apollo 11"


def test_keywords_requires_question(cfg):
    with pytest.raises(ValidationError):
        KeywordExtractor(FakeProvider(), cfg).extract("   ")


def test_stream_answer_marie_curie(cfg):
    provider = FakeProvider()
    events = list(AnswerRelay(provider, cfg).stream_answer("Who was Marie Curie?", [CURIE]))
    assert events[:-1] == [TextDelta("Marie "), TextDelta("Curie "), TextDelta("was a physicist.")]
    assert events[-1] == Done(articles_used=1)
    prompt = provider.requests[0].messages[0].content
    assert "Article: Marie Curie" in prompt
    assert "Source: https://en.wikipedia.org/wiki/Marie_Curie" in prompt
    assert provider.requests[0].max_tokens == 1500


def test_stream_answer_error_mid_stream(cfg):
    provider = FakeProvider(fail_after=1, error=NetworkError(code="NETWORK_ERROR", message="connection reset"))
    events = list(AnswerRelay(provider, cfg).stream_answer("q", [CURIE]))
    assert events == [TextDelta("Marie "), Error("connection reset")]


def test_stream_answer_unexpected_exception(cfg):
    provider = FakeProvider(fail_after=0, error=RuntimeError("kaboom"))
    events = list(AnswerRelay(provider, cfg).stream_answer("q", []))
    assert events == [Error("kaboom")]


def test_stream_answer_without_articles(cfg):
    provider = FakeProvider(deltas=("General answer",))
    events = list(AnswerRelay(provider, cfg).stream_answer("What is love?", []))
    assert events[-1] == Done(articles_used=0)
    assert "no stored articles were available" in provider.requests[0].messages[0].content


def test_prompts():
    grounded = build_answer_prompt("Who was Marie Curie?", [CURIE])
    assert grounded.startswith("Here are relevant Wikipedia articles:")
    assert "mention which articles you're referencing" in grounded
    general = build_answer_prompt("Who was Marie Curie?", [])
    assert "I don't have any Wikipedia articles" in general
    assert "Capitalize proper nouns" in build_keywords_prompt("q")


def test_stream_answer_cut_off_upstream(cfg):
    incomplete = ApiError(code="STREAM_INCOMPLETE", message="stream ended early", http_status=502)
    provider = FakeProvider(deltas=("Marie ", "Curie "), fail_after=1, error=incomplete)
    events = list(AnswerRelay(provider, cfg).stream_answer("Who was Marie Curie?", [CURIE]))
    assert events == [TextDelta("Marie "), Error("stream ended early")]
