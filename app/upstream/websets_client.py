"""HTTP client for the upstream Exa Websets API.

Only the two calls the job tracker needs: create a webset (not
idempotent) and fetch its current state (idempotent). Transport and HTTP
failures are translated into UpstreamUnavailable (retry later) or
UpstreamRejected (don't retry).
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from app.jobs.errors import UpstreamRejected, UpstreamUnavailable
from app.jobs.models import RemoteJobState
from app.jobs.reconcile import remote_state_from_payload

logger = logging.getLogger(__name__)

WEBSETS_PATH = "/websets/v0/websets"

# Upstream statuses worth retrying
_RETRYABLE_STATUS = {408, 429}


class WebsetsClient:
    """Thin async wrapper around one shared httpx.AsyncClient."""

    def __init__(
        self,
        base_url: str = "https://api.exa.ai",
        api_key: str = "",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key
        self._http = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "accept": "application/json",
                "content-type": "application/json",
            },
        )

    async def create_remote_job(
        self, params: Dict[str, Any], api_key: Optional[str] = None
    ) -> str:
        """Create a webset upstream. Returns the upstream webset id."""
        data = await self._request("POST", WEBSETS_PATH, api_key, json=params)
        webset_id = data.get("id")
        if not isinstance(webset_id, str) or not webset_id:
            raise UpstreamRejected("Exa API Error: create response carried no webset id")
        logger.info("Webset %s creation initiated", webset_id)
        return webset_id

    async def fetch_remote_job_state(
        self, external_job_id: str, api_key: Optional[str] = None
    ) -> RemoteJobState:
        """Fetch the current state of a webset."""
        path = f"{WEBSETS_PATH}/{quote(external_job_id, safe='')}"
        data = await self._request("GET", path, api_key)
        state = remote_state_from_payload(data)
        logger.debug(
            "Webset %s search status: %s (progress=%s)",
            external_job_id, state.status, state.progress,
        )
        return state

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        api_key: Optional[str],
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        key = api_key or self._api_key
        if not key:
            raise UpstreamRejected("Exa API key is required")

        try:
            response = await self._http.request(
                method, path, json=json, headers={"x-api-key": key}
            )
        except httpx.TransportError as e:
            logger.warning("Exa API call failed (%s %s): %s", method, path, e)
            raise UpstreamUnavailable(
                f"Exa API unreachable: {type(e).__name__}: {e}"
            ) from e

        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning(
                "Exa API call failed (%s %s): %s %s",
                method, path, response.status_code, message,
            )
            error_cls = (
                UpstreamUnavailable
                if response.status_code >= 500 or response.status_code in _RETRYABLE_STATUS
                else UpstreamRejected
            )
            raise error_cls(
                f"Exa API Error ({response.status_code}): {message}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamRejected(
                "Exa API Error: response body is not JSON",
                status_code=response.status_code,
            ) from e
        if not isinstance(data, dict):
            raise UpstreamRejected(
                "Exa API Error: response body is not an object",
                status_code=response.status_code,
            )
        return data


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:500] or response.reason_phrase
    if isinstance(body, dict):
        for key in ("message", "error"):
            if isinstance(body.get(key), str):
                return body[key]
    return str(body)[:500]
