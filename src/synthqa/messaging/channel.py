"""
Message Channel - In-process publish/subscribe bus for typed messages.

Handlers subscribe to one or more message types (or to everything) and are
awaited in subscription order when a message is sent. Queue listeners get a
copy of every message, which suits streaming endpoints.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional, Set, Tuple

from pydantic import BaseModel

from synthqa.messaging.messages import parse_message

logger = logging.getLogger(__name__)

Handler = Callable[[BaseModel], Awaitable[None]]


class MessageChannel:
    """
    Typed pub/sub bus.

    ``send`` delivers and waits for every handler; ``post`` schedules the
    delivery and returns immediately, like a window ``postMessage``. A
    failing handler is logged and does not stop delivery to the others.

    Example:
        >>> channel = MessageChannel()
        >>> async def on_action(message):
        ...     print(message.action.type)
        >>> channel.subscribe(on_action, "action-recorded")
        >>> await channel.send(ActionRecorded(action=action))
    """

    def __init__(self):
        self._handlers: List[Tuple[Optional[frozenset], Handler]] = []
        self._queues: List[asyncio.Queue] = []
        self._pending: Set[asyncio.Task] = set()

    def subscribe(self, handler: Handler, *types: str) -> Callable[[], None]:
        """
        Register a handler.

        Args:
            handler: Async callable receiving the message
            *types: Message types to receive; all types when empty

        Returns:
            A function that removes the subscription
        """
        entry = (frozenset(types) if types else None, handler)
        self._handlers.append(entry)

        def unsubscribe() -> None:
            if entry in self._handlers:
                self._handlers.remove(entry)

        return unsubscribe

    def listen(self) -> asyncio.Queue:
        """Subscribe a queue that receives every message."""
        queue: asyncio.Queue = asyncio.Queue()
        self._queues.append(queue)
        return queue

    def unlisten(self, queue: asyncio.Queue) -> None:
        if queue in self._queues:
            self._queues.remove(queue)

    async def send(self, message: BaseModel) -> None:
        """Deliver a message and wait for all handlers."""
        message_type = getattr(message, "type", None)
        for queue in list(self._queues):
            queue.put_nowait(message)

        for types, handler in list(self._handlers):
            if types is not None and message_type not in types:
                continue
            try:
                await handler(message)
            except Exception as e:
                logger.warning(f"Handler for '{message_type}' failed: {e}")

    def post(self, message: BaseModel) -> None:
        """Schedule delivery of a message without waiting for it."""
        task = asyncio.get_running_loop().create_task(self.send(message))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def receive(self, raw: Any) -> bool:
        """
        Deliver a raw payload after validating it.

        Returns:
            False if the payload was not a recognized message
        """
        message = parse_message(raw)
        if message is None:
            return False
        await self.send(message)
        return True

    async def flush(self) -> None:
        """Wait until every posted message has been delivered."""
        while self._pending:
            await asyncio.gather(*list(self._pending))
