"""Runtime orchestration for notify_slack."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, BinaryIO, Dict

import httpx
import requests

from .config import Config
from .core import EchoTee, FlushScheduler, GracefulShutdown, RunReport, ShutdownCoordinator
from .delivery import SlackDeliverer
from .errors import ConfigurationError, InputError
from .slack import FileUploadClient, PostFileParam, PostTextParam, WebhookClient


class NotifySlackRuntime:
    def __init__(
        self,
        config: Config,
        logger: logging.Logger,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.config = config
        self.logger = logger
        self.transport = transport
        self.session = session

    async def stream(
        self,
        source: BinaryIO,
        sink: BinaryIO,
        *,
        interruption: GracefulShutdown | None = None,
    ) -> RunReport:
        """Relay ``source`` to Slack in batches while echoing it to ``sink``."""

        if not self.config.slack_url:
            raise ConfigurationError("must specify Slack URL")
        client = WebhookClient(self.config.slack_url, transport=self.transport)
        deliverer = SlackDeliverer(
            client,
            PostTextParam(
                channel=self.config.stream_channel(),
                username=self.config.username,
                icon_emoji=self.config.icon_emoji,
            ),
        )
        scheduler = FlushScheduler(EchoTee(source, sink))
        shutdown = interruption or GracefulShutdown()
        owns_signals = interruption is None
        if owns_signals:
            shutdown.install()

        interval = self.config.effective_interval
        self.logger.debug("Streaming to %s every %.3fs", deliverer.template.channel or "<default channel>", interval)
        try:
            report = await ShutdownCoordinator(scheduler, shutdown).run(interval, deliverer, deliverer)
        finally:
            if owns_signals:
                shutdown.uninstall()
            await client.aclose()

        if report.flush_errors:
            self.logger.warning("%d intermediate flush(es) failed and were dropped", len(report.flush_errors))
        self.logger.info(
            "Stream finished after %d periodic flush(es)%s",
            report.flush_count,
            " (interrupted)" if report.interrupted else "",
        )
        return report

    def upload_snippet(self, filename: str, upload_filename: str = "", filetype: str = "") -> Dict[str, Any]:
        """Upload ``filename`` as a Slack snippet with a single synchronous request."""

        if not self.config.token:
            raise ConfigurationError("must specify Slack token for uploading to snippet")
        channel = self.config.snippet_target()

        path = Path(filename)
        if not path.is_file():
            raise InputError(f"{filename} does not exist")
        try:
            content = path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise InputError(f"unable to read {filename}: {exc}") from exc

        client = FileUploadClient(self.config.token, session=self.session)
        return client.post_file(
            PostFileParam(
                channel=channel,
                filename=upload_filename or filename,
                content=content,
                filetype=filetype,
            )
        )


__all__ = ["NotifySlackRuntime"]
