from __future__ import annotations

import logging
import time

import httpx

from lesson_quiz.models import SummaryContext
from lesson_quiz.providers.base import ScoreSubmitter

log = logging.getLogger("lesson_quiz.score")


class WebhookScoreSubmitter(ScoreSubmitter):
    """POST graded results as JSON to an external score service."""

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        viewer: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url
        self.timeout = timeout
        self.viewer = viewer
        self._transport = transport

    async def submit(self, score: int, question_count: int, summary: SummaryContext) -> bool:
        t0 = time.monotonic()
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            resp = await client.post(
                self.url,
                json={
                    "score": score,
                    "question_count": question_count,
                    "viewer": self.viewer,
                    "summary": summary.to_dict(),
                },
            )
            resp.raise_for_status()
        log.info("Score %d/%d posted to %s (%.1fs, HTTP %d)",
                 score, question_count, self.url, time.monotonic() - t0, resp.status_code)
        return True

    def name(self) -> str:
        return f"webhook/{self.url}"
