from typing import Literal, Optional

from pydantic import BaseModel, Field

from prime_art.primality import DEFAULT_ROUNDS
from prime_art.utils import DEFAULT_ALPHABET


SearchStateName = Literal["running", "found", "cancelled", "failed"]


class StartSearchRequest(BaseModel):
    seed: str
    alphabet: str = DEFAULT_ALPHABET
    rounds: int = Field(default=DEFAULT_ROUNDS, ge=1, le=64)
    random_seed: Optional[int] = None


class SearchStatus(BaseModel):
    search_id: str
    state: SearchStateName
    attempts: int = 0
    current_candidate: Optional[str] = None
    changed_digit_index: Optional[int] = None
    prime: Optional[str] = None
    error: Optional[str] = None


class IsPrimeRequest(BaseModel):
    value: str
    rounds: int = Field(default=DEFAULT_ROUNDS, ge=1, le=64)


class IsPrimeResponse(BaseModel):
    value: str
    prime: bool
