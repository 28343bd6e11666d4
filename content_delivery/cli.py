"""
Command-line interface for content-delivery-sync.

This module implements the `cds` command using Click, with rich-click for
the help output colors.

Commands:
    cds sync                          Sync the space into the local store
    cds sync --type entries           Only sync entries
    cds sync --content-type cat       Only sync entries of one content type
    cds sync --reset                  Drop the local store and start over
    cds status                        Show the stored token and counts

Options:
    --config <path>                   Config file (default: ./config.yaml)
    --verbose                         Show DEBUG output on the console

Configuration:
    The CLI reads config.yaml (see core.config) for the space id, access
    token and storage directory. The local store and the logs live in the
    storage directory.

Exit Codes:
    0   success
    1   configuration error
    2   transport error
    3   decoding error or other sync error
    130 interrupted
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import rich_click as click

# Configure rich-click for better help formatting
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.MAX_WIDTH = 100
click.rich_click.OPTION_GROUPS = {
    "cds sync": [
        {
            "name": "Scope",
            "options": ["--type", "--content-type", "--reset"],
        },
        {
            "name": "General",
            "options": ["--config", "--verbose", "--help"],
        },
    ],
}

from content_delivery import __version__
from content_delivery.client import ContentDeliveryClient
from content_delivery.core import (
    Config,
    ConfigurationError,
    ContentDeliveryError,
    SyncStore,
    TransportError,
    get_logger,
    load_config,
    log_orphan_link,
    setup_logging,
    shutdown_logging,
)
from content_delivery.core.progress import SyncProgressBar
from content_delivery.sync.state import SyncState
from content_delivery.transport import SYNCABLE_TYPE_NAMES, AiohttpTransport, SyncableTypes

logger = get_logger(__name__)


EXIT_CONFIG_ERROR = 1
EXIT_TRANSPORT_ERROR = 2
EXIT_SYNC_ERROR = 3
EXIT_INTERRUPTED = 130


@click.group()
@click.version_option(__version__, prog_name="content-delivery-sync")
def cli() -> None:
    """
    content-delivery-sync: mirror a content delivery space locally.

    Runs incremental sync sessions against the delivery API and keeps the
    entries, assets and sync token in a local SQLite store, so every run
    only fetches what changed since the last one.

    \b
    BASIC USAGE:
        cds sync                     # Initial sync, then incremental
        cds status                   # What is stored locally
    """


@cli.command()
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    metavar="<config.yaml>",
    help="Configuration file (default: ./config.yaml)"
)
@click.option(
    "--type", "type_name",
    type=click.Choice(SYNCABLE_TYPE_NAMES),
    default="all",
    show_default=True,
    help="Resources to sync"
)
@click.option(
    "--content-type",
    type=str,
    default=None,
    metavar="<id>",
    help="Only sync entries of this content type"
)
@click.option(
    "--reset",
    is_flag=True,
    help="Clear the local store and run an initial sync"
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Show DEBUG messages on the console"
)
def sync(
    config_path: Optional[Path],
    type_name: str,
    content_type: Optional[str],
    reset: bool,
    verbose: bool
) -> None:
    """Synchronize the space into the local store."""
    store: SyncStore | None = None

    try:
        config = load_config(config_path)

        config.storage.directory.mkdir(parents=True, exist_ok=True)
        setup_logging(config.storage.directory, verbose=verbose)
        logger.info("content-delivery-sync starting")

        store = SyncStore(config.storage.database_path)
        if reset:
            logger.info("Clearing local store")
            store.reset()

        if content_type is not None:
            syncable_types = SyncableTypes.entries_of_content_type(content_type)
        else:
            syncable_types = SyncableTypes.from_name(type_name)

        state = asyncio.run(_run_sync(config, store, syncable_types))

        _log_orphan_links(state)
        _print_summary(store, state)
        logger.info("content-delivery-sync completed successfully")

    except ConfigurationError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        logger.error(f"Configuration error: {e.message}")
        sys.exit(EXIT_CONFIG_ERROR)

    except TransportError as e:
        click.echo(f"Transport error: {e.message}", err=True)
        if e.is_rate_limit and e.retry_after is not None:
            click.echo(f"Rate limited, retry in {e.retry_after}s", err=True)
        logger.error(f"Transport error: {e.message}", exc_info=True)
        sys.exit(EXIT_TRANSPORT_ERROR)

    except ContentDeliveryError as e:
        click.echo(f"Sync error: {e.message}", err=True)
        logger.error(f"Sync error: {e.message}", exc_info=True)
        sys.exit(EXIT_SYNC_ERROR)

    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        logger.info("Interrupted by user")
        sys.exit(EXIT_INTERRUPTED)

    finally:
        if store is not None:
            store.close()
        shutdown_logging()


async def _run_sync(config: Config, store: SyncStore, syncable_types: SyncableTypes) -> SyncState:
    """
    Run one sync session, resuming from the stored token when there is one.

    Preview configurations are rejected by the client before any request.
    """
    transport = AiohttpTransport(config)

    async with ContentDeliveryClient(config, transport=transport, persistence=store) as client:
        state = None
        if not config.is_preview and store.get_sync_token():
            locale_table = await client.fetch_locales()
            state = store.load_state(locale_table)
            logger.info(
                f"Resuming from stored token ({len(state.entries_by_id)} entries, "
                f"{len(state.assets_by_id)} assets)"
            )

        with SyncProgressBar() as progress:
            return await client.sync(state, syncable_types, on_page=progress.on_page)


def _log_orphan_links(state: SyncState) -> None:
    for orphan in state.orphan_links():
        log_orphan_link(
            logger,
            source_id=orphan.source_id,
            field=orphan.field,
            locale=orphan.locale,
            target_id=orphan.target_id,
            target_type=orphan.target_type,
        )


def _print_summary(store: SyncStore, state: SyncState) -> None:
    counts = store.counts()

    logger.info("=" * 60)
    logger.info("SYNC SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Entries:           {counts['entries']}")
    logger.info(f"Assets:            {counts['assets']}")
    logger.info(f"Deleted entries:   {counts['deleted_entries']}")
    logger.info(f"Deleted assets:    {counts['deleted_assets']}")
    logger.info(f"Orphan links:      {len(state.orphan_links())}")
    logger.info("=" * 60)

    click.echo(
        f"Synced {counts['entries']} entries and {counts['assets']} assets "
        f"(token {state.sync_token})"
    )


@cli.command()
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    metavar="<config.yaml>",
    help="Configuration file (default: ./config.yaml)"
)
def status(config_path: Optional[Path]) -> None:
    """Show what the local store holds."""
    try:
        config = load_config(config_path)
    except ConfigurationError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)

    db_path = config.storage.database_path
    if not db_path.exists():
        click.echo(f"No local store at {db_path}. Run 'cds sync' first.")
        return

    try:
        store = SyncStore(db_path)
    except ContentDeliveryError as e:
        click.echo(f"Store error: {e.message}", err=True)
        sys.exit(EXIT_SYNC_ERROR)

    try:
        counts = store.counts()
        click.echo(f"Store:           {db_path}")
        click.echo(f"Sync token:      {store.get_sync_token() or '(none)'}")
        click.echo(f"Last synced:     {store.get_last_synced() or '(never)'}")
        click.echo(f"Locales:         {', '.join(store.get_locale_codes()) or '(unknown)'}")
        click.echo(f"Entries:         {counts['entries']}")
        click.echo(f"Assets:          {counts['assets']}")
        click.echo(f"Deleted entries: {counts['deleted_entries']}")
        click.echo(f"Deleted assets:  {counts['deleted_assets']}")
    finally:
        store.close()


def main() -> None:
    """Entry point for the `cds` console script."""
    cli()


if __name__ == "__main__":
    main()
