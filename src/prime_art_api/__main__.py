"""Entry point for the prime search API."""

import uvicorn

from prime_art.utils import configure_logging


def main():
    """Start the prime search API server."""
    configure_logging()
    uvicorn.run("prime_art_api.api:app", host="127.0.0.1", port=8000, reload=True)


if __name__ == "__main__":
    main()
