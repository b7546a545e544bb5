"""Round-robin credential rotation for a single provider.

The K-th call (0-indexed over the rotator's lifetime) returns key ``K mod N``.
The pre-modulo counter is advanced under a lock, so concurrent callers (worker
threads or event-loop tasks) each get a distinct, strictly increasing ticket.
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Sequence

from quizmaster.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class KeyRotator:
    def __init__(self, keys: Sequence[str], name: str = "provider"):
        if not keys:
            raise ConfigurationError(f"No API keys configured for {name}")
        self._keys: tuple[str, ...] = tuple(keys)
        self.name = name
        self._counter = itertools.count()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._keys)

    def next_ticket(self) -> tuple[int, str]:
        """Return ``(ticket, key)``; ticket is the pre-modulo call index."""
        with self._lock:
            ticket = next(self._counter)
        return ticket, self._keys[ticket % len(self._keys)]

    def next_key(self) -> str:
        ticket, key = self.next_ticket()
        logger.debug("%s: using key slot %d/%d", self.name, ticket % len(self._keys), len(self._keys))
        return key
