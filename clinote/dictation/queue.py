"""Per-session queue of dictated text waiting for remote analysis.

At most one call is in flight. Text dictated while a call is running stays
queued and goes out, coalesced, with the next flush. A failed batch is put
back at the front of the queue so the next trigger retries it.
"""

import logging
from typing import Awaitable, Callable, TypeVar

from clinote.dictation.analysis_client import AnalysisError
from clinote.notes.segmenter import normalize_text

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AnalysisQueue:
    def __init__(self, pending: list[str] | None = None, enabled: bool = True):
        self.pending: list[str] = list(pending or [])
        self.enabled = enabled
        self.in_flight = False
        self.last_error: str = ""

    def enqueue(self, text: str) -> bool:
        if not self.enabled:
            return False
        text = normalize_text(text)
        if not text:
            return False
        self.pending.append(text)
        return True

    def clear(self):
        self.pending = []
        self.last_error = ""

    async def flush(self, send: Callable[[str], Awaitable[T]]) -> T | None:
        """Send the queued batch. Returns the send result, or None when nothing was sent or the call failed."""
        if not self.enabled or self.in_flight or not self.pending:
            return None

        batch = " ".join(self.pending)
        self.pending = []
        self.in_flight = True
        try:
            result = await send(batch)
        except AnalysisError as e:
            self.last_error = str(e)[:500]
            self.pending = [batch] + self.pending
            logger.warning("Analysis failed, requeued %d chars for retry: %s", len(batch), e)
            return None
        finally:
            self.in_flight = False

        self.last_error = ""
        return result

    async def stop(self, send: Callable[[str], Awaitable[T]]) -> T | None:
        """Flush whatever is queued when dictation stops. A single attempt."""
        return await self.flush(send)
