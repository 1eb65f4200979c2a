from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from .models import DispatchOutcome, RecipientOutcome
from .transports.base import MessageTransport

DEFAULT_BATCH_SIZE = 10
DEFAULT_BATCH_DELAY_SEC = 1.0


def partition(items: Sequence[str], size: int) -> list[list[str]]:
    if size < 1:
        raise ValueError("batch size must be a positive integer")
    return [list(items[start : start + size]) for start in range(0, len(items), size)]


class Dispatcher:
    """Sends one message to many recipients in rate-limited concurrent batches."""

    def __init__(
        self,
        transport: MessageTransport,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay_sec: float = DEFAULT_BATCH_DELAY_SEC,
        sleep: Callable[[float], None] = time.sleep,
        logger: Optional[logging.Logger] = None,
    ):
        if batch_size < 1:
            raise ValueError("batch size must be a positive integer")
        if batch_delay_sec < 0:
            raise ValueError("batch delay must not be negative")
        self.transport = transport
        self.batch_size = batch_size
        self.batch_delay_sec = batch_delay_sec
        self.sleep = sleep
        self.logger = logger or logging.getLogger(__name__)

    def send_all(self, recipients: Sequence[str], message: str) -> DispatchOutcome:
        batches = partition(list(recipients), self.batch_size)
        self.logger.info(
            "dispatch started: recipients=%s batches=%s batch_size=%s",
            len(recipients),
            len(batches),
            self.batch_size,
        )

        outcomes: list[RecipientOutcome] = []
        for index, batch in enumerate(batches):
            outcomes.extend(self._send_batch(batch, message))
            if index < len(batches) - 1 and self.batch_delay_sec > 0:
                self.sleep(self.batch_delay_sec)

        result = DispatchOutcome(recipients=tuple(outcomes))
        self.logger.info(
            "dispatch complete: total=%s succeeded=%s failed=%s",
            result.total,
            result.succeeded,
            result.failed,
        )
        return result

    def _send_batch(self, batch: list[str], message: str) -> list[RecipientOutcome]:
        with ThreadPoolExecutor(max_workers=len(batch), thread_name_prefix="send") as pool:
            futures = [pool.submit(self._send_one, recipient, message) for recipient in batch]
            return [future.result() for future in futures]

    def _send_one(self, recipient: str, message: str) -> RecipientOutcome:
        try:
            result = self.transport.send(recipient, message)
        except Exception as exc:
            self.logger.warning("send raised: recipient=%s error=%s", recipient, exc)
            return RecipientOutcome(recipient=recipient, success=False, detail=str(exc) or type(exc).__name__)

        if not result.success:
            self.logger.warning(
                "send failed: recipient=%s channel=%s error=%s",
                recipient,
                result.channel,
                result.error_message,
            )
            return RecipientOutcome(
                recipient=recipient,
                success=False,
                detail=result.error_message or "unknown send failure",
            )
        return RecipientOutcome(recipient=recipient, success=True, detail=result.response_excerpt)
