"""
Sequential chunk processing with a fixed delay between chunks
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Sequence

logger = logging.getLogger(__name__)


class SequentialProcessor:
    """
    Drives chunks through an async processor strictly one at a time.

    A chunk whose processor raises is logged and skipped; the remaining chunks
    still run, so callers get whatever partial results were produced.
    """

    def __init__(
        self,
        delay_seconds: float = 3.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        self.delay_seconds = delay_seconds
        self._sleep = sleep

    async def process(
        self,
        chunks: Sequence[str],
        processor: Callable[[str], Awaitable[Any]]
    ) -> List[Any]:
        """
        Run ``processor`` over each chunk in order.

        Args:
            chunks: Ordered chunks to process
            processor: Async callable applied to a single chunk

        Returns:
            Non-empty outputs in chunk order; list or tuple outputs are flattened
        """
        results: List[Any] = []
        total = len(chunks)

        for index, chunk in enumerate(chunks):
            if index > 0 and self.delay_seconds > 0:
                await self._sleep(self.delay_seconds)

            try:
                result = await processor(chunk)
            except Exception as e:
                logger.error(f"Error processing chunk {index + 1}/{total}: {e}")
                continue

            if isinstance(result, (list, tuple)):
                results.extend(item for item in result if item)
            elif result:
                results.append(result)

            logger.info(f"Processed chunk {index + 1}/{total}")

        return results
