"""CLI entry point for esa-cli."""

from pathlib import Path
from typing import Optional, Tuple

import click
from rich.console import Console
from rich.markup import escape

from esa_cli import __version__
from esa_cli.editing import round_trip
from esa_cli.editing.round_trip import RoundTripStatus
from esa_cli.editing.session import EditingSession
from esa_cli.models.config import Config, default_config_path
from esa_cli.models.post import SearchQuery
from esa_cli.prompts import confirm_delete
from esa_cli.services.esa_client import EsaClient
from esa_cli.services.exceptions import EsaCliError
from esa_cli.utils.logging import configure_logging, get_logger


logger = get_logger(__name__)
console = Console()


def load_config(config_path: Optional[Path] = None) -> Config:
    """
    Load configuration from ~/.config/esa-cli/config.yaml or config_path.

    Returns:
        Validated Config instance

    Raises:
        click.ClickException: If config is missing, has invalid permissions, or validation fails
    """
    path = config_path or default_config_path()

    try:
        config = Config.load(path)
        logger.info("config_loaded", path=str(path), team=config.esa.team)
        return config
    except FileNotFoundError as e:
        logger.error("config_not_found", path=str(path))
        raise click.ClickException(str(e))
    except PermissionError as e:
        logger.error("config_permission_error", path=str(path))
        raise click.ClickException(str(e))
    except Exception as e:
        logger.error("config_validation_error", error=str(e))
        raise click.ClickException(f"Configuration validation failed:\n{e}")


def make_client(config: Config) -> EsaClient:
    """Create the API client. Tests replace this to inject a mock transport."""
    return EsaClient(config.esa)


def make_session(config: Config) -> EditingSession:
    """Create the editing session, preparing the scratch file.

    Raises:
        click.ClickException: If the scratch file cannot be created
    """
    try:
        return EditingSession(config.editor.scratch_path, config.editor.command)
    except EsaCliError as e:
        logger.error("scratch_setup_failed", error=str(e))
        raise click.ClickException(str(e))


def fail(action: str, error: EsaCliError) -> click.ClickException:
    """Log an action failure and wrap it for click."""
    logger.error(f"{action}_failed", error_type=type(error).__name__, error=str(error))
    return click.ClickException(str(error))


@click.group()
@click.version_option(version=__version__, prog_name="esa")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file (default: ~/.config/esa-cli/config.yaml)",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path]):
    """esa: read and write esa.io posts from the terminal."""
    configure_logging()
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@cli.command()
@click.pass_context
def team(ctx: click.Context):
    """Show the team's information."""
    logger.info("team_command_started")
    config = load_config(ctx.obj["config_path"])

    with make_client(config) as client:
        try:
            info = client.get_team()
        except EsaCliError as e:
            raise fail("team", e)

    click.echo(f"team: {info.name} ({info.privacy.value})")
    click.echo(f"url: {info.url}")
    if info.description:
        click.echo(info.description)


@cli.command()
@click.argument("number", type=int)
@click.pass_context
def post(ctx: click.Context, number: int):
    """Show post NUMBER."""
    logger.info("post_command_started", number=number)
    config = load_config(ctx.obj["config_path"])

    with make_client(config) as client:
        try:
            fetched = client.get_post(number)
        except EsaCliError as e:
            raise fail("post", e)

    click.echo(fetched.url)
    click.echo(fetched.full_name)
    click.echo(fetched.body_md)


@cli.command(name="list")
@click.option("-q", "--query", "q", help="esa search query, e.g. 'in:dev wip:false'")
@click.option(
    "--sort",
    type=click.Choice(["updated", "created", "number", "stars", "watches", "comments", "best_match"]),
    help="Sort key",
)
@click.option("--order", type=click.Choice(["desc", "asc"]), default="desc", show_default=True)
@click.option(
    "--include",
    type=click.Choice(["stargazers", "comments", "comments.stargazers"]),
    multiple=True,
    help="Include related data (repeatable)",
)
@click.option("--page", type=click.IntRange(min=1), help="Page number")
@click.option("--per-page", type=click.IntRange(1, 100), help="Posts per page")
@click.pass_context
def list_posts(
    ctx: click.Context,
    q: Optional[str],
    sort: Optional[str],
    order: str,
    include: Tuple[str, ...],
    page: Optional[int],
    per_page: Optional[int],
):
    """
    List or search posts.

    Examples:
        esa list
        esa list -q "in:dev wip:false" --sort created --order asc
        esa list --page 2 --per-page 50
    """
    logger.info("list_command_started", q=q, sort=sort, order=order, page=page)
    config = load_config(ctx.obj["config_path"])
    query = SearchQuery(
        q=q,
        include=list(include) or None,
        sort=sort,
        order=order,
        page=page,
        per_page=per_page,
    )

    with make_client(config) as client:
        try:
            result = client.list_posts(query)
        except EsaCliError as e:
            raise fail("list", e)

    for listed in result.posts:
        click.echo(f"{listed.number}\t{listed.full_name}")

    summary = f"page {result.page}, {len(result.posts)} of {result.total_count} posts"
    if result.next_page:
        summary += f" (next: --page {result.next_page})"
    click.echo(summary, err=True)


@cli.command()
@click.option("--wip/--ship", default=True, show_default=True, help="Create as work in progress")
@click.option("-m", "--message", help="Change message")
@click.pass_context
def create(ctx: click.Context, wip: bool, message: Optional[str]):
    """
    Create a post in your editor.

    Type the post name on the line after the first marker, using
    "category/path/Name #tag1 #tag2", and the body after the second marker.
    Leaving the template untouched cancels.
    """
    logger.info("create_command_started", wip=wip)
    config = load_config(ctx.obj["config_path"])
    session = make_session(config)

    with make_client(config) as client:
        try:
            outcome, created = round_trip.create_post(client, session, wip=wip, message=message)
        except EsaCliError as e:
            raise fail("create", e)

    if not _report_outcome(outcome):
        return

    click.echo(f"Created #{created.number}: {created.full_name}")
    click.echo(created.url)
    logger.info("create_command_completed", number=created.number)


@cli.command()
@click.argument("number", type=int)
@click.option(
    "--wip/--ship",
    default=None,
    help="Mark as work in progress or ship it (default: keep current state)",
)
@click.option("-m", "--message", help="Change message")
@click.pass_context
def edit(ctx: click.Context, number: int, wip: Optional[bool], message: Optional[str]):
    """Edit post NUMBER in your editor."""
    logger.info("edit_command_started", number=number)
    config = load_config(ctx.obj["config_path"])
    session = make_session(config)

    with make_client(config) as client:
        try:
            original, outcome, result = round_trip.edit_post(
                client, session, number, wip=wip, message=message
            )
        except EsaCliError as e:
            raise fail("edit", e)

    if not _report_outcome(outcome):
        return

    click.echo(f"Updated #{result.number}: {result.full_name} (revision {result.revision_number})")
    click.echo(result.url)
    if result.overlapped:
        console.print(
            f"[bold yellow]Warning:[/bold yellow] post #{number} was changed by someone else "
            f"after revision {original.revision_number}; the server merged both edits. "
            f"Review the result at {escape(result.url)}",
            highlight=False,
        )
    logger.info("edit_command_completed", number=number, overlapped=result.overlapped)


@cli.command()
@click.argument("number", type=int)
@click.option("-y", "--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete(ctx: click.Context, number: int, yes: bool):
    """Delete post NUMBER after confirmation."""
    logger.info("delete_command_started", number=number)
    config = load_config(ctx.obj["config_path"])

    with make_client(config) as client:
        try:
            target = client.get_post(number)
            if not yes and not confirm_delete(target.number, target.full_name):
                logger.info("delete_declined", number=number)
                click.echo("Cancelled.")
                return
            client.delete_post(number)
        except EsaCliError as e:
            raise fail("delete", e)

    click.echo(f"Deleted #{number}: {target.full_name}")


def _report_outcome(outcome: round_trip.RoundTrip) -> bool:
    """Print why nothing was sent. Returns True when the edit was submitted."""
    if outcome.status is RoundTripStatus.ABORTED:
        click.echo(f"Editor exited with status {outcome.exit_status}; nothing was sent.", err=True)
        return False
    if outcome.status is RoundTripStatus.CANCELLED:
        click.echo("No changes; nothing was sent.", err=True)
        return False
    return True


def main():
    """Main entry point for setuptools console script."""
    cli()


if __name__ == "__main__":
    main()
