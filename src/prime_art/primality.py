"""
Miller-Rabin probable-prime testing over arbitrary-precision integers.

A `False` verdict is a proof of compositeness. A `True` verdict means no random
witness out of `rounds` exposed n, so a composite slips through with probability
at most 4**-rounds.
"""
from collections import OrderedDict
import random
import threading
from typing import Optional, Tuple, Union

from prime_art.utils import InvalidInputError, parse_digits, random_below, split_power_of_two

DEFAULT_ROUNDS = 8
DEFAULT_CACHE_SIZE = 65536

# Verdicts for n < 10, checked before any witness is drawn.
SMALL_VERDICTS = {
    0: False, 1: False, 2: True, 3: True, 4: False,
    5: True, 6: False, 7: True, 8: False, 9: False,
}


def _is_witness(a: int, d: int, s: int, n: int) -> bool:
    """True when base a proves n composite, given n - 1 = d * 2**s."""
    x = pow(a, d, n)  # square-and-multiply, reduced mod n at every step
    if x == 1 or x == n - 1:
        return False
    for _ in range(s - 1):
        x = (x * x) % n
        if x == n - 1:
            return False
    return True


def miller_rabin(n: int, rounds: int = DEFAULT_ROUNDS, rng: Optional[random.Random] = None) -> bool:
    """Uncached Miller-Rabin test on an int. Witnesses are drawn uniformly from [2, n - 2]."""
    if rounds < 1:
        raise InvalidInputError("rounds must be a positive integer")
    if n < 10:
        return SMALL_VERDICTS.get(n, False)
    if n % 2 == 0 or n % 3 == 0:
        return False

    rng = rng or random.Random()
    d, s = split_power_of_two(n - 1)
    for _ in range(rounds):
        a = 2 + random_below(rng, n - 3)
        if _is_witness(a, d, s, n):
            return False
    return True


def is_prime(
    n: Union[int, str],
    rounds: int = DEFAULT_ROUNDS,
    rng: Optional[random.Random] = None,
) -> bool:
    """Test an int or a base-10 digit string. Non-numeric input raises InvalidInputError."""
    return miller_rabin(parse_digits(n), rounds, rng)


class VerdictCache:
    """
    Bounded LRU map from tested integer to verdict.
    maxsize=None grows without bound; maxsize=0 stores nothing.

    Composite verdicts are proofs and answer any request. A probable-prime
    verdict only answers requests for at most the rounds it survived.
    """

    def __init__(self, maxsize: Optional[int] = DEFAULT_CACHE_SIZE) -> None:
        if maxsize is not None and maxsize < 0:
            raise ValueError("maxsize must be >= 0 or None")
        self.maxsize = maxsize
        self._lock = threading.Lock()
        self._entries: OrderedDict[int, Tuple[bool, int]] = OrderedDict()
        self.hits = 0
        self.misses = 0

    def get(self, n: int, rounds: int = DEFAULT_ROUNDS) -> Optional[bool]:
        with self._lock:
            entry = self._entries.get(n)
            if entry is None or (entry[0] and entry[1] < rounds):
                self.misses += 1
                return None
            self._entries.move_to_end(n)
            self.hits += 1
            return entry[0]

    def put(self, n: int, verdict: bool, rounds: int = DEFAULT_ROUNDS) -> None:
        if self.maxsize == 0:
            return
        with self._lock:
            previous = self._entries.get(n)
            if verdict and previous is not None:
                if not previous[0]:
                    return
                rounds = max(rounds, previous[1])
            self._entries[n] = (verdict, rounds)
            self._entries.move_to_end(n)
            if self.maxsize is not None:
                while len(self._entries) > self.maxsize:
                    self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, n: int) -> bool:
        with self._lock:
            return n in self._entries


class PrimalityOracle:
    """Miller-Rabin with an owned verdict cache and a pluggable random source."""

    def __init__(
        self,
        rounds: int = DEFAULT_ROUNDS,
        rng: Optional[random.Random] = None,
        cache: Optional[VerdictCache] = None,
    ) -> None:
        if rounds < 1:
            raise InvalidInputError("rounds must be a positive integer")
        self.rounds = rounds
        self.rng = rng or random.Random()
        self.cache = cache if cache is not None else VerdictCache()
        self.tests_run = 0

    def is_prime(self, n: Union[int, str], rounds: Optional[int] = None) -> bool:
        value = parse_digits(n)
        rounds = self.rounds if rounds is None else rounds
        if rounds < 1:
            raise InvalidInputError("rounds must be a positive integer")
        verdict = self.cache.get(value, rounds)
        if verdict is not None:
            return verdict
        self.tests_run += 1
        verdict = miller_rabin(value, rounds, self.rng)
        self.cache.put(value, verdict, rounds)
        return verdict

    __call__ = is_prime
