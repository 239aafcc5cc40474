"""llmstxt CLI — install llms.txt documentation as agent skills."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any

import click
from rich.console import Console
from rich.logging import RichHandler

from llmstxt import __version__
from llmstxt.commands.base import BatchReport, CommandContext
from llmstxt.error_boundary import cli_error_boundary


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _run(ctx: CommandContext, coro: Awaitable[Any]) -> Any:
    """Run a command coroutine, then give telemetry a moment to flush."""

    async def runner() -> Any:
        try:
            return await coro
        finally:
            await ctx.telemetry.aclose()

    result = asyncio.run(runner())
    if isinstance(result, BatchReport) and result.exit_code:
        raise SystemExit(result.exit_code)
    return result


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--project-dir",
    "-C",
    default=".",
    type=click.Path(file_okay=False),
    help="Project root (default: current directory)",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging on stderr")
@click.pass_context
def main(click_ctx: click.Context, project_dir: str, verbose: bool):
    """llmstxt — manage llms.txt documentation as AI agent skills.

    Fetches llms.txt files from the registry, installs them as skills for
    your coding agents, and keeps the CLAUDE.md index in sync.
    """
    _configure_logging(verbose)
    if click_ctx.obj is None:
        click_ctx.obj = CommandContext.create(project_dir=project_dir)


# ── Install ──────────────────────────────────────────────────────────


@main.command()
@click.argument("names", nargs=-1, required=True)
@click.option("--full", is_flag=True, help="Prefer llms-full.txt when available")
@click.option("--force", is_flag=True, help="Re-download even if already installed")
@click.pass_obj
@cli_error_boundary
def install(ctx: CommandContext, names: tuple[str, ...], full: bool, force: bool):
    """Install one or more skills by name or slug."""
    from llmstxt.commands.install import install as run_install

    _run(ctx, run_install(ctx, list(names), full=full, force=force))


# ── Update ───────────────────────────────────────────────────────────


@main.command()
@click.argument("name", required=False)
@click.option("--force", is_flag=True, help="Ignore cached validators and re-download")
@click.pass_obj
@cli_error_boundary
def update(ctx: CommandContext, name: str | None, force: bool):
    """Refresh installed skills (all, or just NAME)."""
    from llmstxt.commands.update import update as run_update

    _run(ctx, run_update(ctx, name, force=force))


# ── Remove ───────────────────────────────────────────────────────────


@main.command()
@click.argument("name")
@click.option("--yes", "-y", is_flag=True, help="Skip the confirmation prompt")
@click.pass_obj
@cli_error_boundary
def remove(ctx: CommandContext, name: str, yes: bool):
    """Remove an installed skill from every agent directory."""
    from llmstxt.commands.remove import remove as run_remove

    _run(ctx, run_remove(ctx, name, yes=yes))


main.add_command(remove, name="rm")


# ── List / Info ──────────────────────────────────────────────────────


@main.command(name="list")
@click.pass_obj
@cli_error_boundary
def list_command(ctx: CommandContext):
    """List installed skills and flag stale ones."""
    from llmstxt.commands.listing import list_installed

    _run(ctx, list_installed(ctx))


main.add_command(list_command, name="ls")


@main.command()
@click.argument("name")
@click.pass_obj
@cli_error_boundary
def info(ctx: CommandContext, name: str):
    """Show registry details and install state for NAME."""
    from llmstxt.commands.listing import show_info

    _run(ctx, show_info(ctx, name))


# ── Search ───────────────────────────────────────────────────────────


@main.command()
@click.argument("query")
@click.option("--category", default=None, help="Comma-separated categories to search")
@click.option("--all-categories", is_flag=True, help="Search every category")
@click.pass_obj
@cli_error_boundary
def search(ctx: CommandContext, query: str, category: str | None, all_categories: bool):
    """Search the registry."""
    from llmstxt.commands.search import search as run_search

    _run(ctx, run_search(ctx, query, category=category, all_categories=all_categories))


# ── Init ─────────────────────────────────────────────────────────────


@main.command()
@click.option("--category", default=None, help="Comma-separated categories to include")
@click.option("--all-categories", is_flag=True, help="Include every category")
@click.option("--dry-run", is_flag=True, help="Show matches without installing")
@click.option("--full", is_flag=True, help="Prefer llms-full.txt when available")
@click.option("--yes", "-y", is_flag=True, help="Skip prompts and use saved agent choices")
@click.pass_obj
@cli_error_boundary
def init(
    ctx: CommandContext,
    category: str | None,
    all_categories: bool,
    dry_run: bool,
    full: bool,
    yes: bool,
):
    """Detect project dependencies and install matching skills."""
    from llmstxt.commands.init import init as run_init

    _run(
        ctx,
        run_init(
            ctx,
            category=category,
            all_categories=all_categories,
            dry_run=dry_run,
            full=full,
            yes=yes,
        ),
    )


if __name__ == "__main__":
    main()
