"""Extraction Client - calls the external AI service that turns text into activity records.

Request:  {"text": str, "preferredExtractor"?: str}
Response: {"logs": [raw records], "fromCache"?: bool} or {"error": str}

A probe request ({"checkApiKeyStatus": true}) answers
{"apiKeyConfigured": bool} without performing an extraction.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from fieldlog.config import Settings, get_settings
from fieldlog.errors import ConfigurationError, ServiceUnavailable

logger = logging.getLogger(__name__)


@dataclass
class ExtractionResult:
    """Raw candidate records returned by the extraction service."""

    logs: list[Any] = field(default_factory=list)
    from_cache: bool = False


class ExtractionClient:
    """HTTP client for the transcription extraction endpoint."""

    def __init__(
        self,
        url: str,
        token: Optional[str] = None,
        timeout: float = 120.0,
        client: Optional[httpx.Client] = None,
    ):
        """Initialize the client.

        Args:
            url: Extraction endpoint URL
            token: Bearer token for the endpoint (Supabase anon or service key)
            timeout: Request timeout in seconds
            client: Preconfigured httpx client (mainly for tests)
        """
        self.url = url
        self.token = token
        self._client = client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ExtractionClient":
        """Build a client from application settings.

        Raises:
            ConfigurationError: If no extraction endpoint is configured
        """
        settings = settings or get_settings()
        url = settings.get_extraction_url()
        if not url:
            raise ConfigurationError(
                "No extraction service endpoint configured.",
                hint="Set FIELDLOG_EXTRACTION_URL or SUPABASE_URL.",
            )
        return cls(
            url=url,
            token=settings.get_extraction_token(),
            timeout=settings.extraction_timeout_seconds,
        )

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
            headers["apikey"] = self.token
        return headers

    def _post(self, payload: dict[str, Any]) -> httpx.Response:
        try:
            return self._client.post(self.url, json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            raise ServiceUnavailable(f"Extraction service request failed: {e}") from e

    def _decode(self, response: httpx.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            data = None
        return data if isinstance(data, dict) else {}

    def extract(
        self,
        text: str,
        preferred_extractor: Optional[str] = None,
    ) -> ExtractionResult:
        """Submit text for extraction.

        Args:
            text: Transcription text
            preferred_extractor: Optional extractor preference passed to the service

        Returns:
            ExtractionResult with raw candidate records (possibly empty)

        Raises:
            ConfigurationError: If the service reports its API key is not configured
            ServiceUnavailable: On network errors or any other service failure
        """
        payload: dict[str, Any] = {"text": text}
        if preferred_extractor:
            payload["preferredExtractor"] = preferred_extractor

        logger.debug("Submitting %d characters to %s", len(text), self.url)
        response = self._post(payload)
        data = self._decode(response)

        if data.get("apiKeyConfigured") is False:
            raise ConfigurationError(
                data.get("error") or "Extraction service API key is not configured."
            )

        if not response.is_success:
            detail = data.get("error") or response.text
            raise ServiceUnavailable(
                f"Extraction service error: {response.status_code} - {detail}"
            )

        if data.get("error"):
            raise ServiceUnavailable(f"Extraction service error: {data['error']}")

        logs = data.get("logs")
        if not isinstance(logs, list):
            raise ServiceUnavailable("Extraction service returned no log list.")

        from_cache = bool(data.get("fromCache", False))
        logger.info(
            "Extraction returned %d candidate(s)%s",
            len(logs),
            " from cache" if from_cache else "",
        )
        return ExtractionResult(logs=logs, from_cache=from_cache)

    def check_api_key_configured(self) -> bool:
        """Ask the service whether its extraction credential is configured.

        Returns:
            True only if the service positively reports a configured key
        """
        try:
            response = self._post({"text": "test", "checkApiKeyStatus": True})
        except ServiceUnavailable as e:
            logger.warning("API key status check failed: %s", e)
            return False

        data = self._decode(response)
        return data.get("apiKeyConfigured") is True

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()
