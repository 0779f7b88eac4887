"""Dify provider: model factory for chat and workflow apps."""

from __future__ import annotations

import os

from ._exceptions import LoadAPIKeyError
from ._http import HTTPClient
from .models import DifyChatModel, DifyChatSettings, DifyCompletionModel, DifyCompletionSettings

DEFAULT_BASE_URL = "https://api.dify.ai/v1"


class Dify:
    """Model factory for the Dify service API.

    Usage:
        dify = Dify(api_key="app-...")
        with dify.chat("my-app").stream("Hi", headers={"user-id": "u1"}) as stream:
            for part in stream:
                print(part.type)

    Each Dify app has its own API key, so a key can also be given per model
    through its settings. Calling the provider directly is the same as ``chat``.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: int = 300,
        headers: dict[str, str] | None = None,
    ):
        self._api_key = api_key
        self.base_url = (
            base_url or os.environ.get("DIFY_BASE_URL") or DEFAULT_BASE_URL
        ).rstrip("/")
        self._timeout = timeout
        self._headers = dict(headers or {})

    def _http(self, api_key: str | None) -> HTTPClient:
        api_key = api_key or self._api_key or os.environ.get("DIFY_API_KEY")
        if not api_key:
            raise LoadAPIKeyError(
                "Dify API key is missing. Pass api_key= or set the DIFY_API_KEY env var."
            )
        return HTTPClient(
            api_key=api_key, base_url=self.base_url, timeout=self._timeout, headers=self._headers
        )

    def chat(self, model_id: str, settings: DifyChatSettings | None = None) -> DifyChatModel:
        settings = settings or DifyChatSettings()
        return DifyChatModel(model_id, settings, self._http(settings.api_key))

    def completion(
        self, model_id: str, settings: DifyCompletionSettings | None = None
    ) -> DifyCompletionModel:
        settings = settings or DifyCompletionSettings()
        return DifyCompletionModel(model_id, settings, self._http(settings.api_key))

    def __call__(self, model_id: str, settings: DifyChatSettings | None = None) -> DifyChatModel:
        return self.chat(model_id, settings)


def create_dify_provider(
    api_key: str | None = None,
    base_url: str | None = None,
    timeout: int = 300,
    headers: dict[str, str] | None = None,
) -> Dify:
    return Dify(api_key=api_key, base_url=base_url, timeout=timeout, headers=headers)
