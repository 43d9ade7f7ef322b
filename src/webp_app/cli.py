"""CLI for converting, purging and previewing WebP variants."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from webp_media.browser import parse_user_agent, supports_webp
from webp_media.config import ENCODERS, REWRITE_MODES, Settings
from webp_media.errors import ValidationError
from webp_media.locator import VariantLocator
from webp_media.store import ManifestStore
from webp_pipeline import CleanupPipeline, ConversionPipeline, convert_all, delete_all, summarize, teardown as purge
from webp_pipeline.bulk import BulkResults
from webp_rewrite import RewriteEngine

from .app import configure_logging

logger = logging.getLogger(__name__)


def _load_store(settings: Settings) -> tuple[ManifestStore, VariantLocator]:
    locator = VariantLocator(settings.media_root, settings.media_url)
    try:
        return ManifestStore.load(settings.manifest_path, locator), locator
    except ValidationError as e:
        raise click.ClickException(str(e)) from e


def _report(results: BulkResults) -> bool:
    """Print every outcome; True when all succeeded."""
    for attachment_id, outcomes in results.items():
        for outcome in outcomes:
            status = "ok" if outcome.success else "error"
            label = f" [{outcome.size}]" if outcome.size else ""
            click.echo(f"{attachment_id}{label} {status}: {outcome.message}")

    summary = summarize(results)
    click.echo(
        f"{summary.attachments} attachments, {summary.files} files: "
        f"{summary.succeeded} succeeded, {summary.failed} failed"
    )
    return summary.ok


def _run(settings: Settings, pipeline_cls, ids: tuple[int, ...], all_: bool) -> BulkResults:
    if not ids and not all_:
        raise click.UsageError("Give attachment ids or --all")

    store, locator = _load_store(settings)
    pipeline = pipeline_cls(store, locator, settings)

    if all_:
        return convert_all(pipeline, store) if pipeline_cls is ConversionPipeline else delete_all(pipeline, store)
    return {attachment_id: pipeline.prepare(attachment_id, store.metadata(attachment_id)) for attachment_id in ids}


@click.group()
@click.option("--media-root", type=click.Path(file_okay=False, path_type=Path), default=None, help="Media directory")
@click.option("--media-url", default=None, help="Public URL prefix of the media directory")
@click.option("--manifest", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Attachment manifest")
@click.option("-q", "--quality", type=int, default=None, help="WebP quality (0-100)")
@click.option("-w", "--workers", type=int, default=None, help="Parallel size-variant conversions")
@click.option("--encoder", type=click.Choice(ENCODERS), default=None, help="WebP encoder")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
@click.pass_context
def cli(ctx: click.Context, media_root: Path | None, media_url: str | None, manifest: Path | None,
        quality: int | None, workers: int | None, encoder: str | None, verbose: bool) -> None:
    """Convert media library images to WebP and serve them."""
    settings = Settings.load().replace(
        media_root=media_root,
        media_url=media_url,
        manifest=manifest,
        quality=quality,
        workers=workers,
        encoder=encoder,
        debug=True if verbose else None,
    )
    configure_logging(settings.debug)
    ctx.obj = settings


@cli.command()
@click.argument("ids", nargs=-1, type=int)
@click.option("--all", "all_", is_flag=True, help="Every supported attachment")
@click.pass_context
def convert(ctx: click.Context, ids: tuple[int, ...], all_: bool) -> None:
    """Convert attachments and their size variants to WebP."""
    results = _run(ctx.obj, ConversionPipeline, ids, all_)
    if not _report(results):
        ctx.exit(1)


@cli.command()
@click.argument("ids", nargs=-1, type=int)
@click.option("--all", "all_", is_flag=True, help="Every supported attachment")
@click.pass_context
def delete(ctx: click.Context, ids: tuple[int, ...], all_: bool) -> None:
    """Delete the WebP files of attachments."""
    results = _run(ctx.obj, CleanupPipeline, ids, all_)
    if not _report(results):
        ctx.exit(1)


@cli.command()
@click.pass_context
def teardown(ctx: click.Context) -> None:
    """Purge every WebP file if WEBP_DELETE_ON_TEARDOWN is set."""
    settings: Settings = ctx.obj
    store, locator = _load_store(settings)
    results = purge(settings, CleanupPipeline(store, locator, settings), store)
    if not settings.delete_on_teardown:
        click.echo("Teardown purge disabled")
        return
    _report(results)


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--accept", default="", help="Accept header of the client")
@click.option("--user-agent", default="", help="User-Agent of the client")
@click.option("--mode", type=click.Choice(REWRITE_MODES), default=None, help="Rewrite mode")
@click.option("--force", is_flag=True, help="Skip the browser check in inline mode")
@click.pass_context
def rewrite(ctx: click.Context, file: Path, accept: str, user_agent: str,
            mode: str | None, force: bool) -> None:
    """Print FILE with its <img> elements rewritten for WebP."""
    settings: Settings = ctx.obj.replace(rewrite_mode=mode, force=True if force else None)
    store, locator = _load_store(settings)
    engine = RewriteEngine(store, locator, settings)
    click.echo(engine.rewrite(file.read_text(encoding="utf-8"), accept, user_agent), nl=False)


@cli.command()
@click.argument("accept")
@click.argument("user_agent")
def supports(accept: str, user_agent: str) -> None:
    """Tell whether a client with these headers gets WebP."""
    browser = parse_user_agent(user_agent)
    verdict = "supported" if supports_webp(accept, user_agent) else "unsupported"
    click.echo(f"{browser.name} {browser.version}: {verdict}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
