"""CLI for running provider catalog scrapers."""

import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

from catalog_scraper.jsonl_writer import CatalogWriteError
from catalog_scraper.providers import PROVIDERS
from catalog_scraper.storage import DEFAULT_CACHE_DIR

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = "catalog"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class Options:
    providers: list[str] = field(default_factory=list)
    cache_dir: Path | None = None
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    verbose: bool = False


class UsageError(Exception):
    """Raised for malformed command line arguments."""


def run_provider(name: str, output_base: Path, cache_dir: Path | None) -> tuple[int, bool]:
    """Run a single provider scraper and return counts.

    Args:
        name: Provider name (e.g., "anthropic")
        output_base: Catalog root; models go to <output_base>/<provider_id>/models.jsonl
        cache_dir: HTTP cache directory, or None to disable caching

    Returns:
        Tuple of (models_count, success)
    """
    print(f"\n=== Scraping {name} ===")
    scraper = PROVIDERS[name](cache_dir=cache_dir)

    try:
        path = scraper.run(output_base)
    except CatalogWriteError as e:
        logger.error(f"Failed to write catalog for {name}: {e}")
        print(f"  ERROR: {e}")
        return 0, False
    finally:
        scraper.close()

    if path is None:
        print("  Models: 0 (catalog not updated)")
        return 0, False

    with path.open(encoding="utf-8") as f:
        models_count = sum(1 for line in f if line.strip())
    print(f"  Models: {models_count}")
    print(f"  Written: {path}")
    return models_count, True


def print_usage() -> None:
    """Print usage information."""
    print("Usage: catalog-scraper [OPTIONS] [PROVIDER...]")
    print()
    print("Scrape AI provider model and pricing pages into catalog/<provider>/models.jsonl.")
    print()
    print("Options:")
    print("  --no-cache          Disable the HTTP response cache")
    print(f"  --cache-dir DIR     Cache directory (default: {DEFAULT_CACHE_DIR})")
    print(f"  --output DIR        Catalog root directory (default: {DEFAULT_OUTPUT_DIR})")
    print("  --verbose           Debug logging")
    print()
    print("Providers:")
    for name in PROVIDERS:
        print(f"  {name}")
    print()
    print("Environment variables:")
    print("  CATALOG_CACHE_DIR   Cache directory (empty disables caching)")
    print("  CATALOG_OUTPUT_DIR  Catalog root directory")
    print()
    print("Examples:")
    print("  catalog-scraper                       # Scrape all providers")
    print("  catalog-scraper anthropic             # Scrape Anthropic only")
    print("  catalog-scraper --no-cache fireworks  # Always hit the network")


def parse_args(args: list[str], environ: dict[str, str] | None = None) -> Options:
    """Parse command line arguments over environment defaults.

    Raises:
        UsageError: If an option is unknown or is missing its value.
    """
    env = os.environ if environ is None else environ

    cache_env = env.get("CATALOG_CACHE_DIR", DEFAULT_CACHE_DIR)
    options = Options(
        cache_dir=Path(cache_env) if cache_env else None,
        output_dir=Path(env.get("CATALOG_OUTPUT_DIR") or DEFAULT_OUTPUT_DIR),
    )

    remaining = iter(args)
    for arg in remaining:
        if arg == "--no-cache":
            options.cache_dir = None
        elif arg in ("--cache-dir", "--output"):
            value = next(remaining, None)
            if not value or value.startswith("-"):
                raise UsageError(f"{arg} requires a directory")
            if arg == "--cache-dir":
                options.cache_dir = Path(value)
            else:
                options.output_dir = Path(value)
        elif arg == "--verbose":
            options.verbose = True
        elif arg.startswith("-"):
            raise UsageError(f"Unknown option: {arg}")
        else:
            options.providers.append(arg)

    return options


def main(argv: list[str] | None = None) -> int:
    """Run one or all scrapers and print summary. Returns the exit code."""
    args = sys.argv[1:] if argv is None else argv
    if args and args[0] in ("-h", "--help", "help"):
        print_usage()
        return 0

    try:
        options = parse_args(args)
    except UsageError as e:
        print(e)
        print("Run with -h for help.")
        return 2

    logging.basicConfig(
        level=logging.DEBUG if options.verbose else logging.INFO,
        format=LOG_FORMAT,
    )

    providers = options.providers or list(PROVIDERS)
    for provider in providers:
        if provider not in PROVIDERS:
            print(f"Unknown provider: {provider}")
            print(f"Available: {', '.join(PROVIDERS)}")
            print()
            print("Run with -h for help.")
            return 1

    total_models = 0
    failed_providers = []
    for provider in providers:
        models_count, success = run_provider(provider, options.output_dir, options.cache_dir)
        total_models += models_count
        if not success:
            failed_providers.append(provider)

    print("\n=== Summary ===")
    print(f"Total: {total_models} models from {len(providers) - len(failed_providers)} providers")

    if failed_providers:
        print(f"Failed: {', '.join(failed_providers)}")
        return 1
    return 0


def cli() -> None:
    """Entry point for CLI."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
