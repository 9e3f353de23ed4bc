"""HTTP clients for Slack incoming webhooks and snippet uploads."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict
from urllib.parse import urlparse

import httpx
import requests

from .errors import ConfigurationError, DeliveryError

logger = logging.getLogger(__name__)

FILES_UPLOAD_URL = "https://slack.com/api/files.upload"
DEFAULT_TIMEOUT = 30.0


@dataclass
class PostTextParam:
    channel: str = ""
    username: str = ""
    icon_emoji: str = ""
    text: str = ""

    def to_payload(self) -> Dict[str, str]:
        payload = {"text": self.text}
        for key in ("channel", "username", "icon_emoji"):
            value = getattr(self, key)
            if value:
                payload[key] = value
        return payload


@dataclass
class PostFileParam:
    channel: str
    filename: str
    content: str
    filetype: str = ""

    def to_form(self) -> Dict[str, str]:
        form = {
            "channels": self.channel,
            "filename": self.filename,
            "content": self.content,
        }
        if self.filetype:
            form["filetype"] = self.filetype
        return form


def validate_url(url: str) -> str:
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigurationError(f"invalid Slack URL: {url!r}")
    return url


class WebhookClient:
    """Async poster for a Slack incoming webhook."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = validate_url(url)
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def post_text(self, param: PostTextParam) -> None:
        # Slack rejects messages without text.
        if not param.text:
            return
        start = time.perf_counter()
        try:
            response = await self._client.post(self.url, json=param.to_payload())
        except httpx.HTTPError as exc:
            raise DeliveryError(f"failed to post to Slack: {exc}") from exc
        elapsed = time.perf_counter() - start
        if response.is_error:
            logger.error("Slack webhook responded with HTTP %s", response.status_code)
            raise DeliveryError(
                f"Slack webhook responded with HTTP {response.status_code}: {response.text.strip()}"
            )
        logger.debug("Posted %d character(s) in %.2fs", len(param.text), elapsed)

    async def aclose(self) -> None:
        await self._client.aclose()


class FileUploadClient:
    """Synchronous uploader for Slack snippets (``files.upload``)."""

    def __init__(
        self,
        token: str,
        *,
        api_url: str = FILES_UPLOAD_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        if not token:
            raise ConfigurationError("must specify Slack token for uploading to snippet")
        self.token = token
        self.api_url = validate_url(api_url)
        self.timeout = timeout
        self.session = session or requests.Session()

    def post_file(self, param: PostFileParam) -> Dict[str, Any]:
        try:
            response = self.session.post(
                self.api_url,
                data=param.to_form(),
                headers={"Authorization": f"Bearer {self.token}"},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise DeliveryError(f"failed to upload {param.filename}: {exc}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise DeliveryError(f"Slack returned a non-JSON payload from {self.api_url}") from exc
        if not isinstance(payload, dict) or not payload.get("ok"):
            error = payload.get("error", "unknown error") if isinstance(payload, dict) else "unknown error"
            raise DeliveryError(f"failed to upload {param.filename}: {error}")
        logger.info("Uploaded %s to %s", param.filename, param.channel)
        return payload


__all__ = [
    "FILES_UPLOAD_URL",
    "FileUploadClient",
    "PostFileParam",
    "PostTextParam",
    "WebhookClient",
    "validate_url",
]
