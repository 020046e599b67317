"""
Warning collector threaded through a single quote calculation.

Records non-fatal degraded-fallback events (missing rules, mode switches,
advisories) without aborting the computation. One collector per call.

A message identical to one already recorded is not appended again: the same
fallback hit twice in one calculation is reported once.
"""

import logging

logger = logging.getLogger(__name__)


class WarningCollector:

    def __init__(self):
        self._messages = []

    def add(self, message: str) -> None:
        """Append a human-readable notice. Repeated wording is kept once."""
        if message in self._messages:
            return
        logger.info("Quote warning: %s", message)
        self._messages.append(message)

    def as_tuple(self) -> tuple:
        return tuple(self._messages)

    def __iter__(self):
        return iter(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __bool__(self) -> bool:
        return bool(self._messages)
