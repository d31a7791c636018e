"""Main entry point for the prime_art package."""
from prime_art.cli import cli


def main():
    """Main entry point function."""
    cli()


if __name__ == "__main__":
    main()
