from typing import Generic, Iterator, Optional, TypeVar
import threading


T = TypeVar("T")


class ProgressQueue(Generic[T]):
    """
    Thread-safe, latest-wins channel between a search and one consumer.
    Only the newest item is kept; older unread items are dropped.
    Closing wakes the consumer, which then drains the last item and stops.
    """

    def __init__(self) -> None:
        self._condition = threading.Condition()
        self._value: Optional[T] = None
        self._has_value = False
        self._closed = False
        self.published = 0
        self.dropped = 0

    @property
    def closed(self) -> bool:
        with self._condition:
            return self._closed

    def publish(self, item: T) -> None:
        """Publish an item, overwriting an unread one. Ignored after close."""
        with self._condition:
            if self._closed:
                return
            if self._has_value:
                self.dropped += 1
            self._value = item
            self._has_value = True
            self.published += 1
            self._condition.notify()

    def close(self) -> None:
        with self._condition:
            self._closed = True
            self._condition.notify_all()

    def get(self, timeout: Optional[float] = None) -> Optional[T]:
        """Block until an item is available or the queue is closed and empty (returns None)."""
        with self._condition:
            ok = self._condition.wait_for(lambda: self._has_value or self._closed, timeout)
            if not ok:
                raise TimeoutError("progress queue get() timed out")
            if not self._has_value:
                return None
            item = self._value
            self._value = None
            self._has_value = False
            return item

    def __iter__(self) -> Iterator[T]:
        while True:
            item = self.get()
            if item is None:
                return
            yield item
