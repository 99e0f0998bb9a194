"""Retry strategies using Strategy Pattern."""
import asyncio
from abc import ABC, abstractmethod
from typing import Optional

from ..config import RetryConfig


class RetryStrategy(ABC):
    """Abstract retry strategy."""
    
    @abstractmethod
    def should_retry(self, status: int, retry_count: int) -> bool:
        """Determines if request should be retried."""
        pass
    
    @abstractmethod
    async def wait_async(self, retry_count: int):
        """Waits before retry (async)."""
        pass


class ExponentialBackoffStrategy(RetryStrategy):
    """
    Exponential backoff retry strategy.
    
    Retries NO_CONNECTION (the request never got an answer) and the 5xx
    statuses listed in the retry configuration. Other negative statuses
    (parse errors, unmapped HTTP codes) are permanent.
    """
    
    NO_CONNECTION = -103
    
    def __init__(self, config: Optional[RetryConfig] = None):
        self._config = config or RetryConfig()
    
    @property
    def max_retries(self) -> int:
        return self._config.max_retries
    
    def should_retry(self, status: int, retry_count: int) -> bool:
        """Retries transient statuses until max_retries is reached."""
        if retry_count >= self._config.max_retries:
            return False
        if status < 0:
            return status == self.NO_CONNECTION
        return status in self._config.retry_on_statuses
    
    async def wait_async(self, retry_count: int):
        """Waits with exponential backoff (async)."""
        await asyncio.sleep(self._config.calculate_delay(retry_count))
