# src/sll/collectors/ordered.py
"""
Ordered bounded-concurrency mapping.

Maps an (async) sequence through a per-item operation that may be slow and
asynchronous, with two guarantees:

1. never more than ``concurrency`` operations are in flight at once;
2. results come out in input order, however the operations finish.

Finished results waiting behind a slow head item are buffered, up to
``max_pending`` admitted-but-unemitted items; past that the source is not
pulled until the head drains.

The bookkeeping lives in :class:`OrderedWindow`: a map from input index to
:class:`Slot`, an admission cursor (``next_index``) and a drain cursor
(``active_index``). A single control loop in :meth:`OrderedWindow.run` is the
only code that touches it, so no locking is involved.

The window is fail-fast: the first operation to fail ends the output with
that error, even if earlier items are still running.
"""

from __future__ import annotations
import asyncio
import inspect
from enum import Enum
from typing import (
    Any,
    AsyncIterable,
    AsyncIterator,
    Awaitable,
    Callable,
    Dict,
    Generic,
    Iterable,
    Optional,
    TypeVar,
    Union,
)

T = TypeVar("T")
R = TypeVar("R")

Operation = Callable[[T], Union[R, Awaitable[R]]]


class SlotState(str, Enum):
    REQUESTED = "requested"
    IN_FLIGHT = "in_flight"
    READY = "ready"
    FAILED = "failed"
    EMITTED = "emitted"


class Slot:
    """Bookkeeping for one input index."""

    __slots__ = ("index", "state", "task", "value", "error")

    def __init__(self, index: int):
        self.index = index
        self.state = SlotState.REQUESTED
        self.task: Optional[asyncio.Future] = None
        self.value: Any = None
        self.error: Optional[BaseException] = None

    def __repr__(self):
        return f"Slot(index={self.index}, state={self.state.value})"


async def _from_iterable(source: Iterable[T]) -> AsyncIterator[T]:
    for item in source:
        yield item


def _as_async_iterator(source: Union[AsyncIterable[T], Iterable[T]]) -> AsyncIterator[T]:
    if hasattr(source, "__aiter__"):
        return source.__aiter__()
    return _from_iterable(source)


class OrderedWindow(Generic[T, R]):
    """
    Sliding window of pending operations keyed by input index.

    ``fn`` may return either an awaitable or a plain value. A plain value
    makes the slot ready on admission without scheduling anything, which is
    how items that need no work pass straight through. Such items never
    count against ``concurrency``; they only take room in the reorder
    buffer bounded by ``max_pending`` (default ``10 * concurrency``).
    """

    def __init__(self, fn: Operation, concurrency: int = 5, max_pending: Optional[int] = None):
        if concurrency < 1:
            raise ValueError(f"concurrency must be a positive integer, got {concurrency}")
        if max_pending is None:
            max_pending = 10 * concurrency
        if max_pending < concurrency:
            raise ValueError(f"max_pending must be at least concurrency ({concurrency}), got {max_pending}")
        self.fn = fn
        self.concurrency = concurrency
        self.max_pending = max_pending
        self.next_index = 0
        self.active_index = 0
        self.slots: Dict[int, Slot] = {}
        self.failure: Optional[Slot] = None
        self.max_in_flight = 0

    @property
    def pending(self) -> int:
        return len(self.slots)

    @property
    def in_flight(self) -> int:
        return sum(1 for s in self.slots.values() if s.state is SlotState.IN_FLIGHT)

    def has_capacity(self) -> bool:
        return self.in_flight < self.concurrency and len(self.slots) < self.max_pending

    def _fail(self, slot: Slot, error: BaseException):
        slot.state = SlotState.FAILED
        slot.error = error
        if self.failure is None:
            self.failure = slot

    def admit(self, item: T) -> Slot:
        """Register ``item`` at the next index and start its operation."""
        slot = Slot(self.next_index)
        self.slots[slot.index] = slot
        self.next_index += 1
        try:
            result = self.fn(item)
        except Exception as e:
            self._fail(slot, e)
            return slot
        if inspect.isawaitable(result):
            slot.task = asyncio.ensure_future(result)
            slot.state = SlotState.IN_FLIGHT
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        else:
            slot.value = result
            slot.state = SlotState.READY
        return slot

    def complete(self, slot: Slot):
        """Record the outcome of a finished operation."""
        task = slot.task
        if task.cancelled():
            self._fail(slot, asyncio.CancelledError(f"operation for index {slot.index} was cancelled"))
            return
        error = task.exception()
        if error is not None:
            self._fail(slot, error)
        else:
            slot.value = task.result()
            slot.state = SlotState.READY

    def pop_ready(self) -> Optional[Slot]:
        """Remove and return the slot at ``active_index`` if it is ready."""
        slot = self.slots.get(self.active_index)
        if slot is None or slot.state is not SlotState.READY:
            return None
        del self.slots[self.active_index]
        slot.state = SlotState.EMITTED
        self.active_index += 1
        return slot

    async def wait_any(self):
        running = {s.task: s for s in self.slots.values() if s.state is SlotState.IN_FLIGHT}
        done, _ = await asyncio.wait(set(running), return_when=asyncio.FIRST_COMPLETED)
        for slot in sorted((running[t] for t in done), key=lambda s: s.index):
            self.complete(slot)

    async def cancel(self):
        tasks = [s.task for s in self.slots.values() if s.task is not None and not s.task.done()]
        for t in tasks:
            t.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def run(self, source: Union[AsyncIterable[T], Iterable[T]]) -> AsyncIterator[R]:
        items = _as_async_iterator(source)
        exhausted = False
        try:
            while True:
                if self.failure is not None:
                    raise self.failure.error
                slot = self.pop_ready()
                if slot is not None:
                    yield slot.value
                    continue
                if not exhausted and self.has_capacity():
                    try:
                        item = await items.__anext__()
                    except StopAsyncIteration:
                        exhausted = True
                    else:
                        self.admit(item)
                    continue
                if not self.slots:
                    return
                # the active slot is still running
                await self.wait_any()
        finally:
            await self.cancel()
            aclose = getattr(items, "aclose", None)
            if aclose is not None:
                await aclose()


def ordered_map(source: Union[AsyncIterable[T], Iterable[T]], fn: Operation,
                concurrency: int = 5, max_pending: Optional[int] = None) -> AsyncIterator[R]:
    """Map ``source`` through ``fn`` keeping input order, at most ``concurrency`` in flight."""
    return OrderedWindow(fn, concurrency, max_pending).run(source)
