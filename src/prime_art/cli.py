import asyncio
from concurrent.futures import ThreadPoolExecutor
import logging
import random
import time
from typing import Optional, Sequence

import click
import requests

from prime_art.art import join_rows, split_rows
from prime_art.primality import DEFAULT_ROUNDS, PrimalityOracle
from prime_art.progress_queue import ProgressQueue
from prime_art.progress_snapshot import SearchProgress
from prime_art.search import PROGRESS_INTERVAL, find_prime
from prime_art.search_handle import SearchHandle
from prime_art.ui import ui_loop
from prime_art.utils import (
    DEFAULT_ALPHABET,
    PrimeArtError,
    abbreviate,
    configure_logging,
    load_art,
)

DEFAULT_API_URL = "http://127.0.0.1:8000/api"


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log search events to stderr")
@click.option("--log-format", type=click.Choice(["console", "json"]), default="console")
def cli(verbose: bool, log_format: str):
    configure_logging(logging.INFO if verbose else logging.WARNING, log_format)


def solver(
    seed: str,
    alphabet: str,
    row_lengths: Sequence[int],
    *,
    rounds: int = DEFAULT_ROUNDS,
    random_seed: Optional[int] = None,
    progress_interval: int = PROGRESS_INTERVAL,
) -> str:
    """Run the prime search in a worker thread while the live view follows it."""
    progress_queue: ProgressQueue[SearchProgress] = ProgressQueue()
    handle = SearchHandle()
    rng = random.Random(random_seed)
    oracle = PrimalityOracle(rounds=rounds, rng=rng)

    def run() -> str:
        try:
            return asyncio.run(find_prime(
                seed,
                alphabet,
                progress_queue.publish,
                handle,
                oracle=oracle,
                rng=rng,
                progress_interval=progress_interval,
            ))
        finally:
            # Always close the queue so the UI can exit
            progress_queue.close()

    with ThreadPoolExecutor(max_workers=1) as executor:
        future = executor.submit(run)

        try:
            ui_loop(progress_queue, row_lengths)
        except KeyboardInterrupt:
            handle.cancel()

        return future.result()


@cli.command()
@click.option("--seed", "-s", help="Seed digit string")
@click.option("--art-path", "-a", type=click.Path(exists=True, dir_okay=False), help="Text file of digit rows")
@click.option("--alphabet", default=DEFAULT_ALPHABET, show_default=True, envvar="PRIME_ART_ALPHABET")
@click.option("--rounds", "-r", type=click.IntRange(min=1), default=DEFAULT_ROUNDS, show_default=True, envvar="PRIME_ART_ROUNDS")
@click.option("--random-seed", type=int, default=None, help="Seed the random source for a reproducible search")
@click.option("--progress-interval", type=click.IntRange(min=1), default=PROGRESS_INTERVAL, show_default=True, envvar="PRIME_ART_PROGRESS_INTERVAL")
@click.option("--output", "-o", type=click.Path(dir_okay=False, writable=True), help="Write the prime art here")
def search(
    seed: Optional[str],
    art_path: Optional[str],
    alphabet: str,
    rounds: int,
    random_seed: Optional[int],
    progress_interval: int,
    output: Optional[str],
):
    """Find a probable prime a digit or two away from the given digits."""
    if bool(seed) == bool(art_path):
        raise click.UsageError("Give exactly one of --seed or --art-path")

    rows = load_art(art_path) if art_path else [seed]
    try:
        prime = solver(
            join_rows(rows),
            alphabet,
            [len(row) for row in rows],
            rounds=rounds,
            random_seed=random_seed,
            progress_interval=progress_interval,
        )
    except PrimeArtError as e:
        raise click.ClickException(str(e))

    prime_rows = split_rows(prime, [len(row) for row in rows])
    for row in prime_rows:
        click.echo(row)

    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write("\n".join(prime_rows) + "\n")


@cli.command()
@click.argument("value")
@click.option("--rounds", "-r", type=click.IntRange(min=1), default=DEFAULT_ROUNDS, show_default=True)
def check(value: str, rounds: int):
    """Test whether VALUE is a probable prime."""
    try:
        verdict = PrimalityOracle(rounds=rounds).is_prime(value)
    except PrimeArtError as e:
        raise click.ClickException(str(e))
    click.echo("prime" if verdict else "composite")


@cli.command()
@click.option("--host", default="127.0.0.1", help="Host to bind the server to")
@click.option("--port", default=8000, help="Port to bind the server to")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
def serve(host: str, port: int, reload: bool):
    """Start the prime search API server."""
    import uvicorn
    from prime_art_api.api import app

    click.echo(f"Starting prime search API on http://{host}:{port}")
    click.echo("Available endpoints:")
    click.echo("  - POST   /api/search       - Start a search")
    click.echo("  - GET    /api/search/{id}  - Search status")
    click.echo("  - DELETE /api/search/{id}  - Cancel a search")
    click.echo("  - POST   /api/is-prime     - Test one value")
    click.echo("\nPress Ctrl+C to stop the server")

    if reload:
        # Use import string for reload mode
        uvicorn.run("prime_art_api.api:app", host=host, port=port, reload=True)
    else:
        uvicorn.run(app, host=host, port=port, reload=False)


def fetch_status(session: requests.Session, url: str) -> dict:
    """GET a search status from the API."""
    response = session.get(url, timeout=10)
    if response.status_code != 200:
        raise click.ClickException(f"Failed to get {url}: {response.status_code} {response.text}")
    return response.json()


@cli.command()
@click.option("--seed", "-s", required=True, help="Seed digit string")
@click.option("--alphabet", default=DEFAULT_ALPHABET, show_default=True)
@click.option("--api-url", default=DEFAULT_API_URL, show_default=True, envvar="PRIME_ART_API_URL")
@click.option("--poll-interval", type=float, default=0.5, show_default=True)
def submit(seed: str, alphabet: str, api_url: str, poll_interval: float):
    """Run a search on a prime search API server and wait for the result."""
    with requests.Session() as session:
        response = session.post(f"{api_url}/search", json={"seed": seed, "alphabet": alphabet}, timeout=10)
        if response.status_code not in (200, 202):
            raise click.ClickException(f"Search rejected: {response.status_code} {response.text}")
        status = response.json()
        url = f"{api_url}/search/{status['search_id']}"

        try:
            while status["state"] == "running":
                time.sleep(poll_interval)
                status = fetch_status(session, url)
                click.echo(f"attempt {status['attempts']:>8,}  {abbreviate(status['current_candidate'] or '')}", err=True)
        except KeyboardInterrupt:
            session.delete(url, timeout=10)
            raise click.Abort()

    if status["state"] != "found":
        raise click.ClickException(f"Search {status['state']}: {status.get('error') or 'no prime'}")
    click.echo(status["prime"])


if __name__ == "__main__":
    cli()
