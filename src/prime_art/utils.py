import logging
import random
import sys
from typing import Callable, List, Literal, Union

import structlog

from prime_art.progress_snapshot import SearchProgress


ProgressFn = Callable[[SearchProgress], None]

DIGITS = "0123456789"
DEFAULT_ALPHABET = DIGITS

type LogFormat = Union[Literal["console", "json"], str]


class PrimeArtError(Exception):
    pass


class InvalidInputError(PrimeArtError, ValueError):
    pass


class ImageTooSmallError(InvalidInputError):
    pass


class SearchCancelledError(PrimeArtError):
    pass


class SearchFailedError(PrimeArtError, RuntimeError):
    """Unexpected failure inside the search loop, with the state it died in."""

    def __init__(self, message: str, *, candidate: str, attempts: int):
        super().__init__(f"{message} (attempt {attempts}, candidate {abbreviate(candidate)})")
        self.candidate = candidate
        self.attempts = attempts


def abbreviate(digits: str, width: int = 24) -> str:
    """Shorten a long digit string for messages and log lines."""
    if len(digits) <= width:
        return digits
    return f"{digits[:width // 2]}…{digits[-width // 2:]} ({len(digits)} digits)"


def validate_seed(seed: str) -> str:
    """Reject empty seeds and seeds with anything other than decimal digits."""
    if not isinstance(seed, str):
        raise InvalidInputError(f"Seed must be a digit string, got {type(seed).__name__}")
    if not seed:
        raise InvalidInputError("Seed digit string cannot be empty")
    bad = sorted({c for c in seed if c not in DIGITS})
    if bad:
        raise InvalidInputError(f"Seed contains non-digit characters: {''.join(bad)!r}")
    return seed


def validate_alphabet(alphabet: str) -> str:
    """
    An alphabet is 1-10 distinct decimal digits, at least one of them non-zero.
    Without a non-zero digit a multi-digit candidate could never avoid a leading zero.
    """
    if not isinstance(alphabet, str) or not alphabet:
        raise InvalidInputError("Alphabet must contain at least one digit")
    if len(alphabet) > len(DIGITS):
        raise InvalidInputError(f"Alphabet has {len(alphabet)} characters; at most 10 allowed")
    if len(set(alphabet)) != len(alphabet):
        raise InvalidInputError(f"Alphabet has duplicate digits: {alphabet!r}")
    bad = sorted({c for c in alphabet if c not in DIGITS})
    if bad:
        raise InvalidInputError(f"Alphabet contains non-digit characters: {''.join(bad)!r}")
    if alphabet == "0":
        raise InvalidInputError("Alphabet needs at least one non-zero digit")
    return alphabet


def parse_digits(value: Union[int, str]) -> int:
    """Normalize an int or a base-10 digit string to an int."""
    if isinstance(value, bool):
        raise InvalidInputError("Booleans are not integers here")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        if not value or not value.isascii() or not value.isdigit():
            raise InvalidInputError(f"Not a base-10 digit string: {abbreviate(value)!r}")
        return _digits_to_int(value)
    raise InvalidInputError(f"Cannot interpret {type(value).__name__} as an integer")


# Stays under the interpreter's str->int digit limit (4300 by default).
INT_CHUNK_DIGITS = 4000


def _digits_to_int(digits: str) -> int:
    """int(digits) for any length, splitting in halves below the str->int limit."""
    if len(digits) <= INT_CHUNK_DIGITS:
        return int(digits)
    low_len = len(digits) // 2
    high = _digits_to_int(digits[:-low_len])
    low = _digits_to_int(digits[-low_len:])
    return high * 10**low_len + low


def split_power_of_two(m: int) -> tuple[int, int]:
    """Write m = d * 2**s with d odd. Returns (d, s)."""
    if m <= 0:
        raise ValueError("m must be positive")
    s = (m & -m).bit_length() - 1  # trailing zero bits
    return m >> s, s


def random_below(rng: random.Random, bound: int) -> int:
    """
    Uniform integer in [0, bound) for any bit length.
    Draws bound.bit_length() random bits and rejects values >= bound.
    """
    if bound <= 0:
        raise ValueError("bound must be positive")
    k = bound.bit_length()
    r = rng.getrandbits(k)
    while r >= bound:
        r = rng.getrandbits(k)
    return r


def configure_logging(level: int = logging.INFO, fmt: LogFormat = "console") -> None:
    """Route structlog to stderr at the given level."""
    renderer = (
        structlog.processors.JSONRenderer(indent=2)
        if fmt == "json"
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def load_art(file_path: str) -> List[str]:
    """Load digit art from a text file, one row per line. Blank lines are skipped."""
    with open(file_path, "r", encoding="utf-8") as f:
        rows = [line.strip() for line in f]
    rows = [row for row in rows if row]
    if not rows:
        raise InvalidInputError(f"No digit rows found in {file_path}")
    return rows
