import pytest


class SettingsStub:
    llm_provider = "anthropic"
    llm_api_key = "test-key-0123456789"
    llm_base_url = None
    llm_model = None
    keywords_max_tokens = 100
    answer_max_tokens = 1500
    http_timeout = 1.0
    host = "127.0.0.1"
    port = 3001
    cors_origin_list = ["*"]
    static_dir = None
    relay_url = "http://relay.test"
    wikipedia_base_url = "https://en.wikipedia.org"
    wikipedia_search_limit = 3
    user_agent = "wiki-chat-tests"


@pytest.fixture
def cfg():
    return SettingsStub()
