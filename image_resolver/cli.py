import asyncio
import json
import logging
import sys

import click

from .config import get_settings
from .data_models.results import ImageResult
from .exceptions import InvalidQueryError
from .normalizer import prepare_search_text
from .rejections import load_rejections_from_file
from .services import resolve_images
from .utils import load_queries
from .version import __version__


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """Event image resolver CLI - find one image per event description."""


@cli.command()
@click.argument("queries_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--max-concurrent",
    type=click.IntRange(min=1),
    default=None,
    help="Number of queries resolved in parallel. Defaults to IMAGE_RESOLVER_MAX_CONCURRENT.",
)
@click.option(
    "--rejections",
    "rejections_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON file of rejected image URLs. Defaults to the configured rejection store.",
)
@click.option(
    "--output",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="Write all results to this JSON file when the batch completes.",
)
@click.option("--verbose", is_flag=True, default=False, help="Log every search step.")
def resolve(
    queries_file: str,
    max_concurrent: int | None,
    rejections_file: str | None,
    output: str | None,
    *,
    verbose: bool,
) -> None:
    """Resolve the queries in QUERIES_FILE, printing one JSON line per result."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO)

    try:
        settings = get_settings()
        queries = load_queries(queries_file)
        rejections = (
            load_rejections_from_file(rejections_file) if rejections_file else None
        )
    except ValueError as e:
        click.echo(str(e), err=True)
        sys.exit(1)

    def print_result(result: ImageResult) -> None:
        click.echo(result.model_dump_json())

    try:
        results = asyncio.run(
            resolve_images(
                queries,
                settings=settings,
                rejections=rejections,
                max_concurrent=max_concurrent,
                on_result=print_result,
            )
        )
    except InvalidQueryError as e:
        click.echo(str(e), err=True)
        sys.exit(1)

    if output:
        with open(output, "w", encoding="utf-8") as f:
            json.dump([result.model_dump(mode="json") for result in results], f, indent=2)
        click.echo(f"Wrote {len(results)} results to {output}", err=True)


@cli.command()
@click.argument("text")
@click.option(
    "--language",
    type=click.Choice(["nl", "en"]),
    default="en",
    show_default=True,
    help="Language of the canonical topic terms.",
)
def normalize(text: str, language: str) -> None:
    """Print the search text the encyclopedia backends would receive for TEXT."""
    click.echo(prepare_search_text(text, language))


def main() -> None:
    """Main entry point for the CLI."""
    cli()
