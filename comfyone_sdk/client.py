"""ComfyOne REST client implementation using httpx."""

from __future__ import annotations

from asyncio import sleep
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import httpx

from comfyone_sdk.config import DEFAULT_DOMAIN
from comfyone_sdk.errors import (
    AuthenticationError,
    ClientConnectionError,
    RetryExhaustedError,
)
from comfyone_sdk.log import LoggerLike, get_logger
from comfyone_sdk.types import APIResponse, PromptPayload, WorkflowPayload

DEFAULT_BASE_URL = f"https://{DEFAULT_DOMAIN}"
DOWNLOAD_DIR = "downloads"


@dataclass
class _RetryState:
    """Attempt bookkeeping for one logical request."""

    max_attempts: int
    backoff_base: float = 2.0
    attempt: int = 0

    def record_failure(self) -> bool:
        """Count a failed attempt; return True when no attempts remain."""
        self.attempt += 1
        return self.attempt >= self.max_attempts

    @property
    def delay(self) -> float:
        return self.backoff_base**self.attempt


class ComfyOneClient:
    """Async client for the ComfyOne workflow-execution API.

    Args:
        api_key: Bearer token sent with every request.
        base_url: Base URL of the service (e.g., "https://pandora-server-cf.onethingai.com").
        max_retries: Attempts per request before giving up (values below 1 mean one attempt).
        timeout_ms: Per-attempt timeout in milliseconds (default: 5000).
        logger: Logger with debug/info/warning/error methods.
        transport: Optional httpx transport, mainly for tests.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        max_retries: int = 3,
        timeout_ms: int = 5000,
        logger: LoggerLike | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._max_retries = max_retries
        self._timeout = timeout_ms / 1000
        self._logger = logger or get_logger()
        self._transport = transport
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            headers=self._build_headers(),
            transport=transport,
        )

    def _build_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Accept": "application/json",
        }

    @property
    def api_key(self) -> str:
        return self._api_key

    async def _request(
        self,
        api: str,
        payload: Any = None,
        method: str = "GET",
        upload: bool = False,
    ) -> APIResponse:
        """Send a request, retrying transient failures with exponential backoff.

        A 401 fails immediately with AuthenticationError. Any other
        ``httpx.HTTPError``, or an ``OSError`` reading an upload, is retried, sleeping ``2 ** attempt`` seconds
        between attempts, until ``max_retries`` attempts have been made.
        """
        url = f"{self._base_url}/{api}"
        self._logger.debug("API Request: %s %s", method, url)

        state = _RetryState(max_attempts=max(1, self._max_retries))
        while True:
            try:
                resp = await self._send(api, payload, method, upload)
                resp.raise_for_status()
            except (httpx.HTTPError, OSError) as exc:
                if isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code == 401:
                    self._logger.error("API Authentication failed")
                    raise AuthenticationError(401, "Invalid API key") from exc

                if state.record_failure():
                    self._logger.error(
                        "API failed after %d retries: %s", state.max_attempts, api
                    )
                    raise RetryExhaustedError(
                        f"API request failed: {exc}",
                        attempts=state.attempt,
                        last_error=exc,
                    ) from exc

                self._logger.warning(
                    "API error, retry %d/%d: %s", state.attempt, state.max_attempts, exc
                )
                await sleep(state.delay)
                continue

            self._logger.debug("API Response: %d - %s", resp.status_code, api)
            return _parse_response(resp, self._logger)

    async def _send(
        self, api: str, payload: Any, method: str, upload: bool
    ) -> httpx.Response:
        if upload:
            path = Path(payload)
            with path.open("rb") as fh:
                return await self._client.request(
                    method, api, files={"file": (path.name, fh)}
                )
        if payload is None:
            return await self._client.request(method, api)
        return await self._client.request(method, api, json=payload)

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> ComfyOneClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    # ---- Backends ----

    async def get_available_backends(self) -> APIResponse:
        """List registered backend instances."""
        return await self._request("v1/backends")

    async def register_backend(self, instance_id: str) -> APIResponse:
        """Register a compute instance as a backend."""
        return await self._request(
            "v1/backends", {"instance_id": instance_id}, "POST"
        )

    async def delete_backend(self, instance_id: str) -> APIResponse:
        return await self._request(f"v1/backends/{instance_id}", method="DELETE")

    async def set_backend_state(self, name: str, state: str) -> APIResponse:
        """Bring a backend ``"up"`` or take it ``"down"``."""
        if state not in ("up", "down"):
            raise ValueError(f"state must be 'up' or 'down', got {state!r}")
        return await self._request(f"v1/backends/{name}", {"state": state}, "PATCH")

    async def get_backend(self, name: str) -> APIResponse:
        return await self._request(f"v1/backends/{name}")

    # ---- Workflows ----

    async def create_workflow(
        self, payload: WorkflowPayload | dict[str, Any]
    ) -> APIResponse:
        """Create a new workflow."""
        return await self._request("v1/workflows", _as_body(payload), "POST")

    async def get_workflows(self) -> APIResponse:
        """List all workflows."""
        return await self._request("v1/workflows")

    async def get_workflow(self, workflow_id: str) -> APIResponse:
        """Get a single workflow by ID."""
        return await self._request(f"v1/workflows/{workflow_id}")

    async def update_workflow(
        self, workflow_id: str, payload: WorkflowPayload | dict[str, Any]
    ) -> APIResponse:
        return await self._request(
            f"v1/workflows/{workflow_id}", _as_body(payload), "PATCH"
        )

    async def delete_workflow(self, workflow_id: str) -> APIResponse:
        """Delete a workflow by ID."""
        return await self._request(f"v1/workflows/{workflow_id}", method="DELETE")

    # ---- Files ----

    async def upload_file(self, file_path: str | Path) -> APIResponse:
        """Upload a local file as multipart form data."""
        return await self._request("v1/files/upload", str(file_path), "POST", upload=True)

    async def download_file(self, url: str, save_path: str | Path | None = None) -> Path:
        """Download ``url`` to ``save_path`` (default: ./downloads/<filename>).

        Single attempt, no retries. The API key is not sent, since result
        URLs usually point at a storage host.
        """
        if save_path is None:
            save_path = Path.cwd() / DOWNLOAD_DIR / Path(urlparse(url).path).name
        final_path = Path(save_path)
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=None) as client:
                resp = await client.get(url)
                resp.raise_for_status()
            final_path.parent.mkdir(parents=True, exist_ok=True)
            final_path.write_bytes(resp.content)
        except (httpx.HTTPError, OSError) as exc:
            raise ClientConnectionError(f"Failed to download file: {exc}") from exc
        return final_path

    # ---- Prompts ----

    async def prompt(self, payload: PromptPayload | dict[str, Any]) -> APIResponse:
        """Queue one execution of a workflow."""
        return await self._request("v1/prompts", _as_body(payload), "POST")

    async def get_prompt_status(self, prompt_id: str) -> APIResponse:
        return await self._request(f"v1/prompts/{prompt_id}")

    async def cancel_prompt(self, prompt_id: str) -> APIResponse:
        return await self._request(f"v1/prompts/{prompt_id}/cancel", method="POST")


# ---- Parsing helpers ----


def _as_body(payload: Any) -> Any:
    if isinstance(payload, (WorkflowPayload, PromptPayload)):
        return payload.to_dict()
    return payload


def _parse_response(resp: httpx.Response, logger: LoggerLike) -> APIResponse:
    if resp.status_code == 204 or not resp.content:
        return APIResponse(code=0, message=resp.reason_phrase or "", data=None)
    try:
        data = resp.json()
    except ValueError:
        logger.warning("Non-JSON response body from %s", resp.request.url)
        return APIResponse(code=0, message=resp.reason_phrase or "", data=resp.text)
    if not isinstance(data, dict):
        return APIResponse(code=0, message="", data=data)
    return APIResponse(
        code=data.get("code", 0),
        message=data.get("message", ""),
        data=data.get("data"),
    )
