"""CLI interface for gitscout."""

from __future__ import annotations

import asyncio
import json
import logging
import sys

import click


def _run(coro):
    """Run an async coroutine synchronously."""
    return asyncio.run(coro)


@click.group()
@click.version_option(package_name="gitscout")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """gitscout — find git repositories under a directory."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


@cli.command()
@click.argument("path", type=click.Path())
@click.option(
    "--max-depth",
    "-d",
    default=3,
    show_default=True,
    envvar="GITSCOUT_MAX_DEPTH",
    type=click.IntRange(min=0),
    help="Directory levels to descend below PATH.",
)
@click.option("--marker", default=".git", show_default=True, help="Marker directory name.")
@click.option("--follow-symlinks", is_flag=True, help="Descend into symlinked directories.")
@click.option("--no-remote", is_flag=True, help="Skip remote URL lookups.")
@click.option("--json-output", "-j", is_flag=True, help="Output as JSON.")
def discover(
    path: str,
    max_depth: int,
    marker: str,
    follow_symlinks: bool,
    no_remote: bool,
    json_output: bool,
) -> None:
    """Discover repositories under PATH."""
    from .core import DiscoveryService

    with DiscoveryService(
        max_depth=max_depth,
        marker=marker,
        follow_symlinks=follow_symlinks,
        resolve_remotes=not no_remote,
    ) as service:
        results = _run(service.discover(path))
        if service.last_error:
            click.echo(f"Error: {service.last_error}", err=True)
            sys.exit(1)

    if json_output:
        click.echo(json.dumps([r.to_dict() for r in results], indent=2, ensure_ascii=False))
        return
    if not results:
        click.echo("No repositories found.")
        return
    for r in results:
        line = f"{r.display_name}\t{r.relative_path}"
        if r.formatted_last_modified:
            line += f"\t{r.formatted_last_modified}"
        if r.remote_url:
            line += f"\t{r.remote_url}"
        click.echo(line)
    click.echo(f"\n{len(results)} repositories found.")


@cli.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False))
@click.option("--remote", "-r", "remote_name", default="origin", show_default=True, help="Remote name.")
def remote(path: str, remote_name: str) -> None:
    """Print the web URL of the repository at PATH."""
    from .remote import GitRemoteResolver

    url = GitRemoteResolver(remote_name).resolve(path)
    if url is None:
        click.echo("No remote configured.", err=True)
        sys.exit(1)
    click.echo(url)
