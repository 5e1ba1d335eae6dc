"""
Retry bounds for the recovery loop.
Limits how many times a Retry decision re-runs substitution.
"""

import time
from dataclasses import dataclass
from typing import Optional


@dataclass
class RetryPolicy:
    """
    Configuration for substitution retries.

    Attributes:
        max_retries: Maximum number of retries (None = unbounded)
        delay_ms: Delay before each retry in milliseconds
    """
    max_retries: Optional[int] = 3
    delay_ms: int = 0

    @classmethod
    def unbounded(cls, delay_ms: int = 0) -> 'RetryPolicy':
        """Interactive use: the user decides when to stop retrying."""
        return cls(max_retries=None, delay_ms=delay_ms)

    def should_retry(self, attempt: int) -> bool:
        """
        Determine if another retry is allowed.

        Args:
            attempt: Retries already performed (0-based)

        Returns:
            True if should retry, False otherwise
        """
        if self.max_retries is None:
            return True
        return attempt < self.max_retries

    def wait(self):
        """Wait for the configured delay between retries."""
        if self.delay_ms > 0:
            time.sleep(self.delay_ms / 1000.0)
