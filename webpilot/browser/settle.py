#!/usr/bin/env python3
"""
Settle-wait module.

This module blocks after page interactions until client-side asynchronous
work (in-flight network calls started by page scripts) has finished. The
poller backs off as the wait grows longer: it converges quickly on fast
pages and keeps the load on the backend bounded on slow ones. A count that
drops to zero is confirmed by a second query, because chained calls often
leave the counter at zero for a moment between two requests.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from ..cli.config import (ASYNC_ENABLED_KEY, ASYNC_IDLE_KEY,
                          ASYNC_SLEEP_AFTER_KEY, ASYNC_SLEEP_INTERVAL_KEY,
                          ASYNC_TIMEOUT_KEY, WebDriverConfig)
from ..errors import ConfigError, SettleTimeoutError

logger = logging.getLogger(__name__)

# Active jQuery requests minus the ones that errored; 0 when jQuery is absent
ACTIVE_ASYNC_COUNT_SCRIPT = (
    "return ("
    "(typeof jQuery === 'undefined' || jQuery == null) ? 0 : "
    "((jQuery.active == 0) ? 0 : (jQuery.active - "
    "((jQuery.activeError == undefined) ? 0 : jQuery.activeError)"
    ")))"
)

# (elapsed seconds upper bound, sleep interval) pairs; past the last bound
# the configured ceiling applies
BACKOFF_SCHEDULE = ((15, 1), (30, 2), (45, 3))


@dataclass(frozen=True)
class SettleWaitConfig:
    """Tunables for the settle-wait poller, all in seconds."""

    enabled: bool = False
    timeout: int = 30
    idle_confirm: int = 0
    sleep_interval_ceiling: int = 5
    post_settle_cooldown: int = 0

    def __post_init__(self):
        """Validate the tunables; only enforced when the wait is enabled."""
        if not self.enabled:
            return
        if self.timeout < 1:
            raise ConfigError(f"{ASYNC_TIMEOUT_KEY} must be one or more")
        if self.idle_confirm < 0:
            raise ConfigError(f"{ASYNC_IDLE_KEY} must be zero or more")
        if self.sleep_interval_ceiling < 1:
            raise ConfigError(f"{ASYNC_SLEEP_INTERVAL_KEY} must be one or more")
        if self.post_settle_cooldown < 0:
            raise ConfigError(f"{ASYNC_SLEEP_AFTER_KEY} must be zero or more")

    @classmethod
    def from_config(cls, config: WebDriverConfig) -> "SettleWaitConfig":
        """
        Read the webdriver.async.* keys.

        Raises:
            ConfigError: If a value is malformed or out of range while enabled
        """
        if not config.get_bool(ASYNC_ENABLED_KEY):
            return cls(enabled=False)
        return cls(
            enabled=True,
            timeout=config.get_int(ASYNC_TIMEOUT_KEY),
            idle_confirm=config.get_int(ASYNC_IDLE_KEY),
            sleep_interval_ceiling=config.get_int(ASYNC_SLEEP_INTERVAL_KEY),
            post_settle_cooldown=config.get_int(ASYNC_SLEEP_AFTER_KEY),
        )


class SettleStatus(Enum):
    """Terminal states of a settle wait."""

    SETTLED = "settled"
    TIMED_OUT = "timed_out"
    DISABLED = "disabled"


@dataclass(frozen=True)
class SettleResult:
    """Outcome of one settle wait."""

    status: SettleStatus
    elapsed: int = 0
    polls: int = 0
    active_count: int = 0

    @property
    def settled(self) -> bool:
        return self.status is not SettleStatus.TIMED_OUT

    def raise_for_status(self) -> "SettleResult":
        """
        Raise SettleTimeoutError if the wait timed out, else return self.

        For callers that treat a timed out wait as a failure.
        """
        if self.status is SettleStatus.TIMED_OUT:
            raise SettleTimeoutError(
                f"{self.active_count} async calls still active after {self.elapsed} seconds",
                result=self,
            )
        return self


def next_sleep_interval(elapsed: int, ceiling: int) -> int:
    """Return the sleep interval for a poll made `elapsed` seconds into the wait."""
    for bound, interval in BACKOFF_SCHEDULE:
        if elapsed < bound:
            return interval
    return ceiling


def _as_count(value) -> int:
    if value is None:
        return 0
    return int(value)


class SettleWaitPoller:
    """
    Polls the page's active async count until it reaches zero.

    The poller blocks the calling thread. It ends either settled or timed
    out; a timeout is logged and returned, never raised.
    """

    def __init__(self, query: Callable[[str], object], config: SettleWaitConfig,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Args:
            query: Executes a script in the page and returns its result
            config: Poller tunables
            sleep: Blocking sleep, replaceable for tests
        """
        self.query = query
        self.config = config
        self.sleep = sleep

    def active_count(self) -> int:
        """Query the page for the number of in-flight async calls."""
        count = _as_count(self.query(ACTIVE_ASYNC_COUNT_SCRIPT))
        logger.debug(f"active async count: {count}")
        if count < 0:
            logger.warning(f"async error count exceeds active count ({count}), treating as settled")
        return count

    def wait(self, context: Optional[str] = None) -> SettleResult:
        """
        Block until the page has no active async calls or the timeout passes.

        Args:
            context: Description of what triggered the wait, for log messages

        Returns:
            SettleResult: SETTLED, TIMED_OUT or DISABLED
        """
        config = self.config
        if not config.enabled:
            return SettleResult(SettleStatus.DISABLED)

        if context:
            logger.debug(f"waiting for async calls to complete after {context}")

        elapsed = 0
        polls = 0
        while True:
            count = self.active_count()
            if count <= 0:
                if config.idle_confirm > 0:
                    logger.debug(f"sleeping {config.idle_confirm} seconds before confirming idle state...")
                    self.sleep(config.idle_confirm)
                count = self.active_count()
                if count <= 0:
                    logger.info("confirmed no async calls currently pending")
                    break

            if elapsed >= config.timeout:
                logger.warning(
                    f"timeout waiting for active async count to be zero, currently {count} "
                    f"active after {elapsed} seconds" + (f" ({context})" if context else "")
                )
                return SettleResult(SettleStatus.TIMED_OUT, elapsed, polls, count)

            interval = next_sleep_interval(elapsed, config.sleep_interval_ceiling)
            logger.debug(f"sleeping for {interval} seconds...")
            self.sleep(interval)
            elapsed += interval
            polls += 1
            logger.debug(f"...polled for {elapsed} seconds")

        if config.post_settle_cooldown > 0:
            logger.debug(f"sleeping for {config.post_settle_cooldown} seconds after async idle...")
            self.sleep(config.post_settle_cooldown)

        return SettleResult(SettleStatus.SETTLED, elapsed, polls, count)
