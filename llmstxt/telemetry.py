"""Anonymous usage telemetry.

Events are posted in the background on the command's event loop. Nothing
here may block a command, print anything, or raise: a failed or slow send
is dropped. Set ``DO_NOT_TRACK=1`` or ``LLMSTXT_TELEMETRY_DISABLED=1`` to
turn it off entirely.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from llmstxt import __version__
from llmstxt.config import Settings

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 5.0
FLUSH_TIMEOUT_SECONDS = 1.5


def build_payload(
    event: str,
    skills: list[str] | None = None,
    agents: list[str] | None = None,
    ci: bool = False,
) -> dict:
    payload: dict = {"event": event, "version": __version__}
    if skills:
        payload["skills"] = ",".join(skills)
    if agents:
        payload["agents"] = ",".join(agents)
    if ci:
        payload["ci"] = True
    return payload


class Telemetry:
    """Best-effort event reporter."""

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self.url = settings.telemetry_url
        self.enabled = not settings.telemetry_disabled
        self.ci = settings.ci
        self.timeout = timeout
        self._transport = transport
        self._pending: set[asyncio.Task] = set()

    def track(
        self,
        event: str,
        skills: list[str] | None = None,
        agents: list[str] | None = None,
    ) -> None:
        """Schedule an event; returns immediately."""
        if not self.enabled:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; dropping telemetry event %s", event)
            return

        payload = build_payload(event, skills, agents, self.ci)
        task = loop.create_task(self._send(payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _send(self, payload: dict) -> None:
        try:
            async with httpx.AsyncClient(
                transport=self._transport, timeout=httpx.Timeout(self.timeout)
            ) as client:
                await client.post(self.url, json=payload)
        except Exception as e:
            logger.debug("Telemetry send failed: %s", e)

    async def aclose(self, wait: float = FLUSH_TIMEOUT_SECONDS) -> None:
        """Give pending sends a short grace period, then cancel the rest."""
        if not self._pending:
            return
        _, still_pending = await asyncio.wait(set(self._pending), timeout=wait)
        for task in still_pending:
            task.cancel()
