"""Bridge between the flush engine and the Slack webhook client."""

from __future__ import annotations

from dataclasses import replace

from .slack import PostTextParam, WebhookClient


class SlackDeliverer:
    """Post each flushed batch as one webhook message."""

    def __init__(self, client: WebhookClient, template: PostTextParam) -> None:
        self.client = client
        self.template = template

    async def deliver(self, content: str) -> None:
        await self.client.post_text(replace(self.template, text=content))


__all__ = ["SlackDeliverer"]
