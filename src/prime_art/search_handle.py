from enum import Enum
import threading

from prime_art.utils import SearchCancelledError


class SearchState(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

    def __str__(self):
        return self.value


class SearchHandle:
    """
    Cancellation token for one in-flight search.

    Moves from ACTIVE to either CANCELLED or COMPLETED exactly once. Cancellation
    is cooperative: the search polls the handle, so `cancel()` may be called from
    any thread or from inside a progress callback.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state = SearchState.ACTIVE

    @property
    def state(self) -> SearchState:
        with self._lock:
            return self._state

    @property
    def cancelled(self) -> bool:
        return self.state is SearchState.CANCELLED

    @property
    def done(self) -> bool:
        return self.state is not SearchState.ACTIVE

    def cancel(self) -> bool:
        """Request cancellation. Returns False when the search already finished."""
        return self._transition(SearchState.CANCELLED)

    def complete(self) -> bool:
        """Mark the search completed. Returns False when it was cancelled first."""
        return self._transition(SearchState.COMPLETED)

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise SearchCancelledError("Prime search was cancelled")

    def _transition(self, target: SearchState) -> bool:
        with self._lock:
            if self._state is not SearchState.ACTIVE:
                return self._state is target
            self._state = target
            return True

    def __repr__(self) -> str:
        return f"SearchHandle(state={self.state})"
