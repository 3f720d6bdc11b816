import httpx
import pytest

from wiki_chat.domain.articles import Article
from wiki_chat.domain.exceptions import ValidationError
from wiki_chat.wikipedia.client import WikipediaClient


SUMMARIES = {
    "Marie_Curie": {
        "title": "Marie Curie",
        "extract": "Marie Curie was a Polish and naturalised-French physicist and chemist.",
        "content_urls": {"desktop": {"page": "https://en.wikipedia.org/wiki/Marie_Curie"}},
        "thumbnail": {"source": "https://upload.wikimedia.org/curie.jpg"},
    },
    "Pierre_Curie": {
        "title": "Pierre Curie",
        "extract": "Pierre Curie was a French physicist.",
    },
    "Curie_(unit)": {
        "title": "Curie (unit)",
        "extract": "The curie is a unit of radioactivity.",
        "content_urls": {"desktop": {"page": "https://en.wikipedia.org/wiki/Curie_(unit)"}},
    },
}


class FakeResponse:
    def __init__(self, url, status_code=200, payload=None):
        self.url = url
        self.status_code = status_code
        self._payload = payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise httpx.HTTPStatusError(
                f"{self.status_code} error",
                request=httpx.Request("GET", self.url),
                response=httpx.Response(self.status_code),
            )

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


def make_client(titles, calls, summaries=SUMMARIES):
    class Client:
        def __init__(self, *a, **kw):
            pass

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def get(self, url, params=None, **_):
            calls.append((url, params))
            if url.endswith("/w/api.php"):
                return FakeResponse(url, payload=[params["search"], titles, [], []])
            key = url.rsplit("/", 1)[-1]
            if key not in summaries:
                return FakeResponse(url, status_code=404, payload={})
            return FakeResponse(url, payload=summaries[key])

    return Client


def test_lookup_returns_articles_in_order(monkeypatch, cfg):
    calls = []
    titles = ["Marie Curie", "Pierre Curie", "Curie (unit)"]
    monkeypatch.setattr("httpx.Client", make_client(titles, calls))
    articles = WikipediaClient(cfg).lookup("Marie Curie", limit=2)
    assert [a.title for a in articles] == ["Marie Curie", "Pierre Curie"]
    assert articles[0].url == "https://en.wikipedia.org/wiki/Marie_Curie"
    # missing canonical URL is tolerated
    assert articles[1].url == ""
    search_url, search_params = calls[0]
    assert search_url == "https://en.wikipedia.org/w/api.php"
    assert search_params["action"] == "opensearch"
    assert search_params["limit"] == 2
    assert len(calls) == 3


def test_lookup_quotes_titles(monkeypatch, cfg):
    calls = []
    monkeypatch.setattr("httpx.Client", make_client(["Curie (unit)"], calls))
    WikipediaClient(cfg).lookup("curie unit")
    assert calls[1][0] == "https://en.wikipedia.org/api/rest_v1/page/summary/Curie_%28unit%29"


def test_lookup_no_titles(monkeypatch, cfg):
    calls = []
    monkeypatch.setattr("httpx.Client", make_client([], calls))
    assert WikipediaClient(cfg).lookup("zzzzqqq") == []
    assert len(calls) == 1


def test_lookup_failure_returns_empty(monkeypatch, cfg):
    class Client:
        def __init__(self, *a, **kw):
            pass

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def get(self, *a, **kw):
            raise httpx.ConnectError("dns failure")

    monkeypatch.setattr("httpx.Client", Client)
    assert WikipediaClient(cfg).lookup("Marie Curie") == []


def test_lookup_summary_failure_returns_empty(monkeypatch, cfg):
    calls = []
    monkeypatch.setattr("httpx.Client", make_client(["Marie Curie", "Missing page"], calls))
    assert WikipediaClient(cfg).lookup("curie") == []


def test_lookup_malformed_search(monkeypatch, cfg):
    class Client:
        def __init__(self, *a, **kw):
            pass

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def get(self, url, params=None, **_):
            return FakeResponse(url, payload={"unexpected": True})

    monkeypatch.setattr("httpx.Client", Client)
    assert WikipediaClient(cfg).lookup("Marie Curie") == []


def test_fetch_summary_not_found(monkeypatch, cfg):
    monkeypatch.setattr("httpx.Client", make_client([], []))
    with pytest.raises(ValidationError) as exc:
        WikipediaClient(cfg).fetch_summary("No such article")
    assert exc.value.message == "Article not found"


def test_article_from_summary():
    article = WikipediaClient.article_from_summary(SUMMARIES["Marie_Curie"])
    assert article == Article(
        title="Marie Curie",
        extract=SUMMARIES["Marie_Curie"]["extract"],
        url="https://en.wikipedia.org/wiki/Marie_Curie",
    )
    assert WikipediaClient.thumbnail_from_summary(SUMMARIES["Pierre_Curie"]) is None


def test_lookup_malformed_summary_fields_returns_empty(monkeypatch, cfg):
    calls = []
    summaries = {"Marie_Curie": {"title": "Marie Curie", "extract": "...", "content_urls": "bogus"}}
    monkeypatch.setattr("httpx.Client", make_client(["Marie Curie"], calls, summaries=summaries))
    articles = WikipediaClient(cfg).lookup("Marie Curie")
    assert articles == [Article(title="Marie Curie", extract="...", url="")]


def test_summary_helpers_tolerate_non_dict_fields():
    data = {"title": "Marie Curie", "content_urls": {"desktop": "bogus"}, "thumbnail": "bogus"}
    assert WikipediaClient.article_from_summary(data).url == ""
    assert WikipediaClient.thumbnail_from_summary(data) is None
