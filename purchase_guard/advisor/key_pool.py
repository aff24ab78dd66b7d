"""Key Pool: API key rotation with per-key health tracking.

Each key moves between two states:
  - HEALTHY: takes part in normal round-robin rotation
  - QUARANTINED: skipped after too many consecutive failures

A quarantined key is probed again once ``quarantine_seconds`` have passed.
Its failure counter is kept, so a failed probe quarantines it again at once.

If every key is quarantined, selection degrades to plain round-robin over
the whole pool: ``next_credential()`` always returns a key.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum

from purchase_guard.core.logging import mask_key

logger = logging.getLogger(__name__)


class KeyState(str, Enum):
    """Key health states."""

    HEALTHY = "healthy"
    QUARANTINED = "quarantined"


@dataclass
class _KeyHealth:
    """Failure tracking for a single API key."""

    consecutive_failures: int = 0
    total_failures: int = 0
    total_successes: int = 0
    last_used_at: float = 0.0
    state: KeyState = KeyState.HEALTHY
    quarantined_at: float = 0.0


# Defaults for quarantining a key
FAILURE_THRESHOLD = 3  # Consecutive failures to quarantine a key
QUARANTINE_SECONDS = 300.0  # Seconds before a quarantined key is probed again


class EmptyKeyPoolError(ValueError):
    """Raised when a KeyPool is built without any usable API key."""


class KeyPool:
    """Round-robin API key selector with health tracking.

    Usage:
        pool = KeyPool(["csk-aaa", "csk-bbb"])

        key = pool.next_credential()
        ...
        pool.report_success(key)  # or pool.report_error(key)

    All methods are safe to call from concurrent coroutines and threads.
    """

    def __init__(
        self,
        api_keys: Iterable[str],
        failure_threshold: int = FAILURE_THRESHOLD,
        quarantine_seconds: float = QUARANTINE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        keys: list[str] = []
        for key in api_keys:
            key = key.strip()
            if key and key not in keys:
                keys.append(key)
        if not keys:
            raise EmptyKeyPoolError("KeyPool requires at least one API key")
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be >= 1")

        self._keys: tuple[str, ...] = tuple(keys)
        self._health: dict[str, _KeyHealth] = {k: _KeyHealth() for k in self._keys}
        self.failure_threshold = failure_threshold
        self.quarantine_seconds = quarantine_seconds
        self._clock = clock
        self._cursor = 0
        self._lock = threading.Lock()

    @property
    def keys(self) -> tuple[str, ...]:
        return self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def _is_available(self, health: _KeyHealth, now: float) -> bool:
        if health.state == KeyState.HEALTHY:
            return True
        # Quarantine expired → allow a probe
        return now - health.quarantined_at >= self.quarantine_seconds

    def next_credential(self) -> str:
        """Return the next key to use.

        Walks the pool from the round-robin cursor and picks the first
        available key. Falls back to plain round-robin when none is.
        """
        with self._lock:
            now = self._clock()
            size = len(self._keys)
            chosen = None

            for offset in range(size):
                index = (self._cursor + offset) % size
                if self._is_available(self._health[self._keys[index]], now):
                    chosen = index
                    break

            if chosen is None:
                chosen = self._cursor % size
                logger.warning(
                    "All %d API keys quarantined, using %s anyway",
                    size,
                    mask_key(self._keys[chosen]),
                )

            self._cursor = (chosen + 1) % size
            key = self._keys[chosen]
            self._health[key].last_used_at = now
            return key

    def report_success(self, api_key: str) -> None:
        """Record a successful call; resets the failure counter and lifts quarantine."""
        with self._lock:
            health = self._health.get(api_key)
            if health is None:
                logger.warning("report_success for unknown key %s ignored", mask_key(api_key))
                return
            health.consecutive_failures = 0
            health.total_successes += 1

            if health.state != KeyState.HEALTHY:
                logger.info("Key %s HEALTHY again (recovered)", mask_key(api_key))
                health.state = KeyState.HEALTHY
                health.quarantined_at = 0.0

    def report_error(self, api_key: str) -> None:
        """Record a failed call and quarantine the key past the threshold."""
        with self._lock:
            health = self._health.get(api_key)
            if health is None:
                logger.warning("report_error for unknown key %s ignored", mask_key(api_key))
                return
            health.consecutive_failures += 1
            health.total_failures += 1

            if health.consecutive_failures >= self.failure_threshold:
                # Restart the quarantine window on every failure past the threshold
                was_healthy = health.state == KeyState.HEALTHY
                health.state = KeyState.QUARANTINED
                health.quarantined_at = self._clock()
                if was_healthy:
                    logger.warning(
                        "Key %s QUARANTINED after %d consecutive failures",
                        mask_key(api_key),
                        health.consecutive_failures,
                    )

    def is_quarantined(self, api_key: str) -> bool:
        with self._lock:
            health = self._health.get(api_key)
            return health is not None and health.state == KeyState.QUARANTINED

    def get_key_state(self, api_key: str) -> dict:
        """Get a health snapshot for one key (key itself masked)."""
        with self._lock:
            health = self._health[api_key]
            return {
                "key": mask_key(api_key),
                "state": health.state.value,
                "consecutive_failures": health.consecutive_failures,
                "total_failures": health.total_failures,
                "total_successes": health.total_successes,
            }

    def get_all_states(self) -> list[dict]:
        """Get health snapshots for all keys, in pool order."""
        return [self.get_key_state(k) for k in self._keys]

    def reset(self, api_key: str) -> None:
        """Manually reset a key to HEALTHY."""
        with self._lock:
            health = self._health[api_key]
            health.state = KeyState.HEALTHY
            health.consecutive_failures = 0
            health.quarantined_at = 0.0
        logger.info("Key %s manually RESET", mask_key(api_key))
