from __future__ import annotations

import asyncio
import logging

import typer
import uvicorn

from record_keeper.api import build_context, create_app
from record_keeper.forex import ForexFeedClient, refresh_rates
from record_keeper.logging_utils import configure_logging
from record_keeper.persistence import SnapshotGateway
from record_keeper.settings import Settings

app = typer.Typer(no_args_is_help=True, add_completion=False)
logger = logging.getLogger("record_keeper")


@app.command()
def serve(
    service: str | None = typer.Option(None, help="Override: tasks|fitness|forex|all"),
    port: int | None = typer.Option(None, help="Override: listen port."),
) -> None:
    """
    Restore the snapshot and serve the REST API.
    """
    overrides: dict[str, object] = {}
    if service is not None:
        overrides["SERVICE"] = service
    if port is not None:
        overrides["PORT"] = port
    try:
        settings = Settings(**overrides)
    except ValueError as e:
        raise typer.BadParameter(f"invalid settings: {e}") from e
    configure_logging(settings.log_level, service=settings.service)

    api = create_app(settings)
    uvicorn.run(api, host=settings.host, port=settings.port, log_config=None)


@app.command()
def show_config() -> None:
    settings = Settings()
    configure_logging(settings.log_level, service=settings.service)
    logger.info("loaded_config", extra={"service": settings.service})
    typer.echo(settings.model_dump())


@app.command()
def fetch_rates() -> None:
    """
    Pull the forex feeds once and write the merged prices to the snapshot.
    """
    settings = Settings(SERVICE="forex")
    configure_logging(settings.log_level, service=settings.service)
    context = build_context(settings)

    async def _run() -> None:
        client = ForexFeedClient(
            urls=settings.feed_urls(),
            timeout_seconds=settings.forex_feed_timeout_seconds,
        )
        try:
            result = await refresh_rates(
                context,
                client,
                deadline_seconds=settings.forex_fetch_deadline_seconds,
            )
        finally:
            await client.aclose()
        typer.echo(
            {
                "ok": not result.failed_urls and not result.timed_out,
                "merged": result.merged,
                "failed_urls": result.failed_urls,
                "timed_out": result.timed_out,
            }
        )

    asyncio.run(_run())


@app.command()
def dump() -> None:
    """
    Print the current snapshot file as JSON.
    """
    settings = Settings()
    configure_logging(settings.log_level, service=settings.service)
    store = SnapshotGateway(settings.data_file).load()
    typer.echo(store.to_snapshot().model_dump_json(indent=2))
