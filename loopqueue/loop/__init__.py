"""Host loop implementations"""

from loopqueue.loop.asyncio_loop import AsyncioHostLoop
from loopqueue.loop.manual import ManualHostLoop

__all__ = ["AsyncioHostLoop", "ManualHostLoop"]
