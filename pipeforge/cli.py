import click


@click.group()
def main() -> None:
    """Pipeforge - pipeline execution daemon and tools."""


@main.command()
@click.option("--host", default=None, help="Bind host (default: from PIPEFORGE_HOST or 127.0.0.1).")
@click.option("--port", default=None, type=int, help="Bind port (default: from PIPEFORGE_PORT or 6927).")
@click.option("--reload", is_flag=True, default=False, help="Enable auto-reload for development.")
def daemon(host: str | None, port: int | None, reload: bool) -> None:
    """Start the pipeline daemon."""
    import uvicorn

    from pipeforge.daemon.settings import get_settings

    settings = get_settings()

    uvicorn.run(
        "pipeforge.daemon.app:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_level="warning",  # uvicorn's own logging is intercepted by loguru
        # Queued plugin tasks get the drain timeout, plus a buffer for closing
        # their progress streams.
        timeout_graceful_shutdown=settings.graceful_shutdown_timeout + 30,
    )


@main.command()
@click.argument("source")
def resolve(source: str) -> None:
    """Resolve a pipeline config (file: or http(s): URI) and print it as JSON."""
    import asyncio

    import httpx

    from pipeforge.daemon.execution.config import resolve_pipeline
    from pipeforge.daemon.log import setup_logging
    from pipeforge.daemon.settings import get_settings

    settings = get_settings()
    setup_logging(settings.log_level, settings.log_file)

    try:
        pipeline = asyncio.run(resolve_pipeline(source, settings=settings))
    except (ValueError, OSError, httpx.HTTPError) as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(pipeline.model_dump_json(by_alias=True, indent=2))


@main.command()
@click.argument("src", type=click.Path(exists=True, file_okay=True, dir_okay=True))
@click.argument("dest", type=click.Path())
@click.option("--max-in-flight", default=None, type=int, help="Concurrent file operations (default: from settings).")
def copy(src: str, dest: str, max_in_flight: int | None) -> None:
    """Replicate a directory tree, preserving modes and symlinks."""
    import asyncio

    from pipeforge.daemon.execution.fs import copy_dir
    from pipeforge.daemon.log import setup_logging
    from pipeforge.daemon.settings import get_settings

    settings = get_settings()
    setup_logging(settings.log_level, settings.log_file)

    try:
        asyncio.run(copy_dir(src, dest, max_in_flight=max_in_flight or settings.copy_max_in_flight))
    except OSError as exc:
        raise click.ClickException(str(exc)) from exc
    except ExceptionGroup as group:
        for exc in group.exceptions:
            click.echo(f"error: {exc}", err=True)
        msg = f"{len(group.exceptions)} entries failed to copy"
        raise click.ClickException(msg) from group
    click.echo(f"Copied {src} -> {dest}")


if __name__ == "__main__":
    main()
