"""Bounded worker pool for cryptographic work."""

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Optional

from ..errors import FheError, InternalCryptoFailure

logger = logging.getLogger(__name__)


class ComputePool:
    """
    Runs cryptographic calls on a fixed number of worker threads.

    Request threads validate on their own and only hand the expensive library
    call to the pool, so at most max_workers cryptographic operations run at
    once and cheap requests never wait behind them. This is also the boundary
    where library faults become InternalCryptoFailure.

    There is no cancellation: a submitted call always runs to completion.
    """

    def __init__(self, max_workers: Optional[int] = None):
        self.max_workers = max_workers or os.cpu_count() or 1
        self._executor = ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="fhe-compute"
        )

    def run(self, description: str, fn: Callable[..., Any], *args: Any) -> Any:
        """
        Run fn(*args) on the pool and wait for its result.

        Raises:
            InternalCryptoFailure: if fn raises anything other than an FheError
        """
        start = time.perf_counter()
        future = self._executor.submit(fn, *args)
        try:
            result = future.result()
        except FheError:
            raise
        except Exception as e:
            logger.error(f"{description} failed in crypto library", exc_info=True)
            raise InternalCryptoFailure(f"{description}: {e}") from e

        logger.debug(f"{description} completed in {time.perf_counter() - start:.3f}s")
        return result

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __repr__(self) -> str:
        return f"ComputePool(max_workers={self.max_workers})"
