"""
HTTP source for workflow definitions served by a REST API.

Talks to ``{base_url}/flows/{flow_id}``: ``GET`` returns the flow resource
with the definition under ``properties.definition``, ``PATCH`` with
``{"properties": {"definition": ...}}`` replaces it. Obtaining the bearer
token is left to the caller.
"""

import json
import logging
import os
from typing import Any, Dict, Optional

import httpx

from ..exceptions import SourceError
from ..privacy.redactor import dump_json
from .base import BaseFlowSource

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0

# Status codes worth retrying
RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})


class HttpFlowSource(BaseFlowSource):
    """REST API source using httpx."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        api_version: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        base_url = base_url or os.getenv("FLOWKEEPER_API_BASE_URL")
        if not base_url:
            raise ValueError(
                "API base URL required. Set FLOWKEEPER_API_BASE_URL or pass base_url parameter."
            )
        token = token or os.getenv("FLOWKEEPER_API_TOKEN")

        self.base_url = base_url.rstrip("/")
        self.api_version = api_version

        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self.client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            headers=headers,
            transport=transport,
        )

    def _params(self) -> Dict[str, str]:
        return {"api-version": self.api_version} if self.api_version else {}

    def _request(self, method: str, flow_id: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self.client.request(
                method, f"/flows/{flow_id}", params=self._params(), **kwargs
            )
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise SourceError(
                self.get_source_name(),
                f"{method} flow {flow_id} returned HTTP {status}",
                status_code=status,
                retryable=status in RETRYABLE_STATUS_CODES,
            ) from e
        except httpx.TransportError as e:
            raise SourceError(
                self.get_source_name(),
                f"Cannot reach {self.base_url}: {e}",
                retryable=True,
            ) from e

    def fetch_definition(self, flow_id: str) -> str:
        response = self._request("GET", flow_id)
        try:
            definition = response.json()["properties"]["definition"]
        except (ValueError, KeyError, TypeError) as e:
            raise SourceError(
                self.get_source_name(),
                f"Response for flow {flow_id} has no properties.definition",
            ) from e

        try:
            text = dump_json(definition, indent=None)
        except ValueError as e:
            raise SourceError(
                self.get_source_name(),
                f"Definition of flow {flow_id} is not standard JSON: {e}",
            ) from e

        logger.debug("Fetched definition of flow %s", flow_id)
        return text

    def update_definition(self, flow_id: str, definition: str) -> None:
        try:
            parsed = json.loads(definition)
        except json.JSONDecodeError as e:
            raise SourceError(
                self.get_source_name(), f"Refusing to upload invalid JSON: {e}"
            ) from e

        # ASCII-only body; lone surrogates cannot be encoded as UTF-8
        body = json.dumps({"properties": {"definition": parsed}}).encode("ascii")
        self._request(
            "PATCH",
            flow_id,
            content=body,
            headers={"Content-Type": "application/json"},
        )
        logger.debug("Updated definition of flow %s", flow_id)

    def close(self) -> None:
        self.client.close()

    @classmethod
    def get_source_name(cls) -> str:
        return "http"
