"""Thin HTTP client wrapping requests.Session with auth and error mapping."""

import logging
from typing import Any

import requests

from ._exceptions import STATUS_MAP, APICallError, APIConnectionError

logger = logging.getLogger(__name__)

ERROR_PREFIX = "Dify API error: "


def _raise_for_status(resp: requests.Response, *, method: str = "", url: str = "") -> None:
    """Map HTTP error responses to typed SDK exceptions."""
    message = f"HTTP {resp.status_code}"
    code = None
    body_text = resp.text
    try:
        # Dify returns {"code", "message", "status"}
        body = resp.json()
        message = body.get("message") or message
        code = body.get("code")
    except (ValueError, AttributeError):
        logger.debug("Failed to parse error body: %s", body_text[:200] if body_text else "empty")
        message = body_text or message

    logger.debug("Dify API error: %s %s -> %s %s", method, url, resp.status_code, message)
    resp.close()
    exc_cls = STATUS_MAP.get(resp.status_code, APICallError)
    raise exc_cls(
        f"{ERROR_PREFIX}{message}",
        status_code=resp.status_code,
        url=url,
        method=method,
        code=str(code) if code is not None else None,
        response_body=body_text,
    )


class HTTPClient:
    """Minimal HTTP client with Bearer auth and error mapping. Never retries."""

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout: int = 300,
        headers: dict[str, str] | None = None,
    ):
        self._session = requests.Session()
        self._session.headers["Authorization"] = f"Bearer {api_key}"
        self._session.headers["Content-Type"] = "application/json"
        if headers:
            self._session.headers.update(headers)
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    @property
    def base_url(self) -> str:
        return self._base_url

    def _send(
        self,
        method: str,
        url: str,
        *,
        is_stream: bool = False,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> requests.Response:
        logger.debug("%s %s (stream=%s)", method, url, is_stream)
        try:
            resp = self._session.request(
                method, url, timeout=self._timeout, stream=is_stream, headers=headers, **kwargs
            )
        except (requests.Timeout, requests.ConnectionError) as e:
            raise APIConnectionError(str(e), url=url, method=method) from e

        if not resp.ok:
            _raise_for_status(resp, method=method, url=url)
        return resp

    def request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        """Send request and raise typed exception on error."""
        return self._send(method, f"{self._base_url}{path}", **kwargs)

    def stream(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        """Send request with stream=True for SSE parsing."""
        return self._send(method, f"{self._base_url}{path}", is_stream=True, **kwargs)
