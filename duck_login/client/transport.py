"""
Async JSON transport for the Duck API
-------------------------------------
Every failure is raised as RequestError:
- non-2xx responses carry status + statusText (HTTP reason phrase)
- connection errors, timeouts and unreadable bodies carry only a message
"""
from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from duck_login.settings import settings


class RequestError(Exception):
    def __init__(self, status: Optional[int] = None, status_text: str = "", message: str = ""):
        self.status = status
        self.status_text = status_text
        self.message = message or (f"{status} - {status_text}" if status else "Request failed")
        super().__init__(self.message)

    @property
    def has_status(self) -> bool:
        return bool(self.status)


class JsonTransport:
    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = (base_url or settings.DUCK_API_BASE_URL).rstrip("/")
        self._timeout = float(timeout if timeout is not None else settings.REQUEST_TIMEOUT_SEC)
        self._client = client or httpx.AsyncClient(timeout=self._timeout)

    def _headers(self, token: Optional[str] = None) -> dict:
        h = {"Content-Type": "application/json"}
        if token:
            h["Authorization"] = f"Bearer {token}"
        return h

    async def post(self, path: str, json: Optional[dict] = None, *, token: Optional[str] = None) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            resp = await self._client.post(url, headers=self._headers(token), json=json)
        except httpx.TimeoutException as e:
            raise RequestError(message=f"Request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise RequestError(message=str(e) or type(e).__name__) from e
        except (httpx.InvalidURL, UnicodeEncodeError) as e:
            # Malformed URL or a header value that cannot go on the wire
            raise RequestError(message=f"Invalid request: {e}") from e

        if not (200 <= resp.status_code < 300):
            raise RequestError(status=resp.status_code, status_text=resp.reason_phrase or "")

        if not resp.content:
            return {}
        try:
            data = resp.json()
        except ValueError as e:
            raise RequestError(message=f"Invalid JSON response: {e}") from e
        return data if isinstance(data, dict) else {}

    async def aclose(self) -> None:
        await self._client.aclose()
