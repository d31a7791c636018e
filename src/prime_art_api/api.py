import asyncio
from collections import OrderedDict
from dataclasses import dataclass
import random
from typing import Optional
import uuid

from fastapi import FastAPI, APIRouter, HTTPException
import structlog

from prime_art.primality import PrimalityOracle
from prime_art.progress_snapshot import SearchProgress
from prime_art.search import find_prime
from prime_art.search_handle import SearchHandle
from prime_art.utils import (
    InvalidInputError,
    PrimeArtError,
    SearchCancelledError,
    abbreviate,
    validate_alphabet,
    validate_seed,
)

from . import models

log = structlog.get_logger()

# Create the FastAPI app
app = FastAPI(title="Prime Search API")

# Create the router for API endpoints
router = APIRouter()


@dataclass
class SearchRecord:
    """One search running as a task on the server's event loop."""
    search_id: str
    seed: str
    handle: SearchHandle
    task: Optional[asyncio.Task] = None
    latest: Optional[SearchProgress] = None
    prime: Optional[str] = None
    error: Optional[str] = None

    def publish(self, progress: SearchProgress) -> None:
        self.latest = progress

    @property
    def state(self) -> models.SearchStateName:
        if self.prime is not None:
            return "found"
        if self.handle.cancelled:
            return "cancelled"
        if self.error is not None:
            return "failed"
        return "running"

    @property
    def finished(self) -> bool:
        return self.task is not None and self.task.done()

    def status(self) -> models.SearchStatus:
        latest = self.latest
        return models.SearchStatus(
            search_id=self.search_id,
            state=self.state,
            attempts=latest.attempts if latest else 0,
            current_candidate=latest.current_candidate if latest else self.seed,
            changed_digit_index=latest.changed_digit_index if latest else None,
            prime=self.prime,
            error=self.error,
        )


# Finished searches kept for status reads, least recently used evicted first.
MAX_FINISHED_SEARCHES = 256

SEARCHES: OrderedDict[str, SearchRecord] = OrderedDict()

# Shared by /is-prime only; every search gets its own oracle.
ORACLE = PrimalityOracle()


async def run_search(record: SearchRecord, req: models.StartSearchRequest) -> None:
    rng = random.Random(req.random_seed)
    try:
        record.prime = await find_prime(
            req.seed,
            req.alphabet,
            record.publish,
            record.handle,
            oracle=PrimalityOracle(rounds=req.rounds, rng=rng),
            rng=rng,
        )
        log.info("search finished", search_id=record.search_id, attempts=record.latest.attempts)
    except SearchCancelledError:
        log.info("search cancelled", search_id=record.search_id)
    except PrimeArtError as e:
        record.error = str(e)
        log.error("search failed", search_id=record.search_id, error=str(e))


def get_record(search_id: str) -> SearchRecord:
    record = SEARCHES.get(search_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Unknown search: {search_id}")
    SEARCHES.move_to_end(search_id)
    return record


def prune_searches() -> None:
    """Drop the least recently used finished searches beyond MAX_FINISHED_SEARCHES. Running ones stay."""
    finished = [search_id for search_id, record in SEARCHES.items() if record.finished]
    for search_id in finished[:max(len(finished) - MAX_FINISHED_SEARCHES, 0)]:
        del SEARCHES[search_id]
        log.debug("search evicted", search_id=search_id)


@router.post("/search", response_model=models.SearchStatus, status_code=202)
async def start_search(req: models.StartSearchRequest):
    """ Start a prime search in the background and return its id. """
    try:
        validate_seed(req.seed)
        validate_alphabet(req.alphabet)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))

    prune_searches()
    record = SearchRecord(search_id=uuid.uuid4().hex, seed=req.seed, handle=SearchHandle())
    SEARCHES[record.search_id] = record
    record.task = asyncio.create_task(run_search(record, req))
    log.info("search started", search_id=record.search_id, seed=abbreviate(req.seed), digits=len(req.seed))
    return record.status()


@router.get("/search/{search_id}", response_model=models.SearchStatus)
async def search_status(search_id: str):
    """ Latest throttled progress of a search, or its result. """
    return get_record(search_id).status()


@router.delete("/search/{search_id}", response_model=models.SearchStatus)
async def cancel_search(search_id: str):
    """ Ask a search to stop. It observes the request at its next progress checkpoint. """
    record = get_record(search_id)
    if record.handle.cancel():
        log.info("cancel requested", search_id=search_id)
    return record.status()


@router.post("/is-prime", response_model=models.IsPrimeResponse)
async def is_prime(req: models.IsPrimeRequest):
    """ Miller-Rabin verdict for a single base-10 value. """
    try:
        verdict = ORACLE.is_prime(req.value, rounds=req.rounds)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return models.IsPrimeResponse(value=req.value, prime=verdict)


# Include the router in the app (after all routes are defined)
app.include_router(router, prefix="/api")
