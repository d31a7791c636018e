from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class SearchProgress:
    """Immutable snapshot of a prime search, published at a throttled cadence."""

    attempts: int
    current_candidate: str
    changed_digit_index: Optional[int] = None
    found: bool = False

    @property
    def digits(self) -> int:
        return len(self.current_candidate)
