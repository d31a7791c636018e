import asyncio
import random
from typing import Optional, Tuple

import structlog

from prime_art.primality import PrimalityOracle
from prime_art.progress_snapshot import SearchProgress
from prime_art.search_handle import SearchHandle, SearchState
from prime_art.utils import (
    DEFAULT_ALPHABET,
    InvalidInputError,
    PrimeArtError,
    ProgressFn,
    SearchCancelledError,
    SearchFailedError,
    parse_digits,
    validate_alphabet,
    validate_seed,
)

log = structlog.get_logger()

PROGRESS_INTERVAL = 20
MAX_MUTATIONS = 2


def estimate_attempts(digits: int) -> float:
    """
    Rough expected attempt count for a prime near a d-digit seed, 1.15 * (d - 1).
    A display hint only; the search is a random walk with no attempt bound.
    """
    return 1.15 * max(digits - 1, 0)


def perturb(
    seed: str,
    alphabet: str,
    rng: random.Random,
    mutations: Optional[int] = None,
) -> Tuple[str, int]:
    """
    Replace 1-2 distinct positions of seed with digits drawn from alphabet.
    Position 0 of a multi-digit seed never receives a '0'.
    Returns the new candidate and the last changed index; seed itself is untouched.
    """
    if mutations is None:
        mutations = rng.randint(1, MAX_MUTATIONS)
    mutations = min(mutations, len(seed))

    candidate = list(seed)
    changed_index = -1
    for pos in rng.sample(range(len(seed)), mutations):
        pool = alphabet
        if pos == 0 and len(seed) > 1:
            pool = alphabet.replace("0", "") or "0"
        candidate[pos] = rng.choice(pool)
        changed_index = pos

    return "".join(candidate), changed_index


async def find_prime(
    seed: str,
    alphabet: str = DEFAULT_ALPHABET,
    on_progress: Optional[ProgressFn] = None,
    handle: Optional[SearchHandle] = None,
    *,
    oracle: Optional[PrimalityOracle] = None,
    rng: Optional[random.Random] = None,
    progress_interval: int = PROGRESS_INTERVAL,
) -> str:
    """
    Search for a probable prime within a couple of digit edits of `seed`.

    Every candidate is a fresh perturbation of the original seed, so edits never
    accumulate. Every `progress_interval` attempts the search checks the handle,
    reports progress and yields to the event loop once; all other attempts run
    without suspending. Raises InvalidInputError before touching the oracle when
    the seed or alphabet is unusable, and SearchCancelledError once a cancelled
    handle is observed.
    """
    validate_seed(seed)
    validate_alphabet(alphabet)
    if progress_interval < 1:
        raise InvalidInputError("progress_interval must be a positive integer")

    handle = handle or SearchHandle()
    if handle.state is SearchState.COMPLETED:
        raise InvalidInputError("Search handle was already used by a completed search")
    handle.raise_if_cancelled()

    rng = rng or random.Random()
    oracle = oracle or PrimalityOracle(rng=rng)
    report = on_progress or (lambda progress: None)

    log.info("search started", digits=len(seed), alphabet=alphabet)

    attempts = 1
    candidate = seed
    changed_index: Optional[int] = None
    try:
        if oracle.is_prime(seed):
            _finish(handle, attempts)
            log.info("seed is prime", digits=len(seed))
            report(SearchProgress(attempts, seed, None, found=True))
            return seed

        while True:
            attempts += 1
            candidate, changed_index = perturb(seed, alphabet, rng)
            value = parse_digits(candidate)

            if oracle.is_prime(value):
                _finish(handle, attempts)
                log.info("prime found", attempts=attempts, digits=len(candidate), changed_digit_index=changed_index)
                report(SearchProgress(attempts, candidate, changed_index, found=True))
                return candidate

            if attempts % progress_interval == 0:
                handle.raise_if_cancelled()
                report(SearchProgress(attempts, candidate, changed_index))
                await asyncio.sleep(0)
                handle.raise_if_cancelled()

    except SearchCancelledError:
        log.info("search cancelled", attempts=attempts)
        raise
    except PrimeArtError:
        raise
    except Exception as e:
        raise SearchFailedError(f"Prime search failed: {e}", candidate=candidate, attempts=attempts) from e


def _finish(handle: SearchHandle, attempts: int) -> None:
    # A cancel that lands before the verdict wins; no result leaves a cancelled search.
    if not handle.complete():
        raise SearchCancelledError(f"Prime search was cancelled after {attempts} attempts")
