"""Retry settings for generated GAPIC clients and their property overrides."""

import dataclasses
import itertools
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Optional, Union

from google.api_core import retry as retries
from google.api_core.timeout import ExponentialTimeout

from pinjected_gcp_autoconfig.core.properties import RetryProperties

# deadline for max_attempts=0 when no total_timeout is configured
DEFAULT_UNLIMITED_RETRY_TIMEOUT = 600.0


@dataclass(frozen=True)
class RetrySettings:
    """
    Immutable retry policy for one RPC method.

    ``max_attempts`` counts the first call, so ``1`` disables retries and ``0`` means
    no attempt limit (only ``total_timeout`` stops retrying, or
    ``DEFAULT_UNLIMITED_RETRY_TIMEOUT`` when it is unset). Durations are seconds.
    """

    total_timeout: Optional[float] = None
    initial_retry_delay: float = 1.0
    retry_delay_multiplier: float = 2.0
    max_retry_delay: float = 60.0
    max_attempts: int = 1
    initial_rpc_timeout: Optional[float] = None
    rpc_timeout_multiplier: float = 1.0
    max_rpc_timeout: Optional[float] = None

    def retries_enabled(self) -> bool:
        return self.max_attempts != 1

    def effective_total_timeout(self) -> Optional[float]:
        if self.total_timeout is None and self.max_attempts <= 0:
            return DEFAULT_UNLIMITED_RETRY_TIMEOUT
        return self.total_timeout

    def to_retry(
        self,
        predicate: Callable[[Exception], bool] = retries.if_transient_error,
    ) -> Optional[retries.Retry]:
        """
        Build a fresh ``Retry`` for a single call. The attempt budget lives in the
        returned object, so it must not be shared between calls.
        """
        if not self.retries_enabled():
            return None
        attempts = itertools.count(1)
        max_attempts = self.max_attempts

        def should_retry(exc: Exception) -> bool:
            if not predicate(exc):
                return False
            return max_attempts <= 0 or next(attempts) < max_attempts

        return retries.Retry(
            predicate=should_retry,
            initial=self.initial_retry_delay,
            maximum=self.max_retry_delay,
            multiplier=self.retry_delay_multiplier,
            timeout=self.effective_total_timeout(),
        )

    def to_timeout(self) -> Union[float, ExponentialTimeout, None]:
        """
        Per-call timeout. Without an RPC timeout the total timeout bounds the call,
        which also covers a call that is never retried.
        """
        if self.initial_rpc_timeout is None:
            return self.effective_total_timeout()
        maximum = (
            self.max_rpc_timeout
            if self.max_rpc_timeout is not None
            else self.initial_rpc_timeout
        )
        if self.rpc_timeout_multiplier == 1.0 and maximum == self.initial_rpc_timeout:
            return self.initial_rpc_timeout
        return ExponentialTimeout(
            initial=self.initial_rpc_timeout,
            maximum=maximum,
            multiplier=self.rpc_timeout_multiplier,
            deadline=self.effective_total_timeout(),
        )


LIBRARY_DEFAULT_RETRY_SETTINGS = RetrySettings()


def update_retry_settings(
    base: RetrySettings, overrides: Optional[RetryProperties]
) -> RetrySettings:
    """Every override that is set replaces the value in ``base``."""
    if overrides is None:
        return base
    changes = {}
    for name in RetryProperties.model_fields:
        value = getattr(overrides, name)
        if isinstance(value, timedelta):
            value = value.total_seconds()
        if value is not None:
            changes[name] = value
    return dataclasses.replace(base, **changes)
