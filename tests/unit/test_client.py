"""Tests for the Dify provider factory."""

import pytest
import responses

from dify_ai import Dify, create_dify_provider
from dify_ai._exceptions import LoadAPIKeyError
from dify_ai.client import DEFAULT_BASE_URL
from dify_ai.models import DifyChatModel, DifyChatSettings, DifyCompletionModel


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv("DIFY_API_KEY", raising=False)
    monkeypatch.delenv("DIFY_BASE_URL", raising=False)


class TestDify:
    def test_default_base_url(self, api_key):
        dify = Dify(api_key=api_key)
        assert dify.base_url == DEFAULT_BASE_URL
        assert dify.chat("m").url == "https://api.dify.ai/v1/chat-messages"

    def test_base_url_from_env(self, monkeypatch, api_key):
        monkeypatch.setenv("DIFY_BASE_URL", "https://dify.internal/v1/")
        assert Dify(api_key=api_key).base_url == "https://dify.internal/v1"

    def test_explicit_base_url(self, api_key, base_url):
        model = Dify(api_key=api_key, base_url=base_url).completion("wf")
        assert model.url == f"{base_url}/workflows/run"

    def test_factories(self, api_key):
        dify = create_dify_provider(api_key=api_key)
        assert isinstance(dify.chat("m"), DifyChatModel)
        assert isinstance(dify("m"), DifyChatModel)
        assert isinstance(dify.completion("m"), DifyCompletionModel)
        assert dify.chat("m").provider == "dify.chat"
        assert dify.completion("m").provider == "dify.completion"

    def test_missing_api_key(self):
        with pytest.raises(LoadAPIKeyError, match="DIFY_API_KEY"):
            Dify().chat("m")

    @responses.activate
    def test_api_key_from_env(self, monkeypatch, base_url, chat_blocking_body):
        monkeypatch.setenv("DIFY_API_KEY", "app-from-env")
        responses.add(responses.POST, f"{base_url}/chat-messages", json=chat_blocking_body)
        Dify(base_url=base_url).chat("m").generate("Hi")
        assert responses.calls[0].request.headers["Authorization"] == "Bearer app-from-env"

    @responses.activate
    def test_settings_api_key_wins(self, api_key, base_url, chat_blocking_body):
        responses.add(responses.POST, f"{base_url}/chat-messages", json=chat_blocking_body)
        model = Dify(api_key=api_key, base_url=base_url).chat(
            "m", DifyChatSettings(api_key="app-per-model")
        )
        model.generate("Hi")
        assert responses.calls[0].request.headers["Authorization"] == "Bearer app-per-model"

    @responses.activate
    def test_provider_headers_sent(self, api_key, base_url, chat_blocking_body):
        responses.add(responses.POST, f"{base_url}/chat-messages", json=chat_blocking_body)
        Dify(api_key=api_key, base_url=base_url, headers={"X-Tenant": "t1"}).chat("m").generate(
            "Hi", headers={"X-Request": "r1"}
        )
        headers = responses.calls[0].request.headers
        assert headers["X-Tenant"] == "t1"
        assert headers["X-Request"] == "r1"
