"""CLI entry point for prinbox.

Collects the review threads of a pull request, filters and prioritizes them,
and prints a compact inbox as Markdown (optionally embedded in a prompt
template) or JSON.
"""

from __future__ import annotations

import importlib.metadata
import logging
import os

import click
from click.core import ParameterSource
from rich.console import Console

from prinbox_cli.auth import resolve_github_token
from prinbox_cli.detect import current_pr_number, current_repository
from prinbox_core import updatecheck
from prinbox_core.config import FORMATS, load_config
from prinbox_core.gh.pull_request import GithubThreadSource, ThreadSourceError
from prinbox_core.inbox import build_inbox, render_output
from prinbox_core.models import PRIORITIES

console = Console(stderr=True)
logger = logging.getLogger(__name__)

# CLI parameter name -> config key, for options that override config files.
_OVERRIDE_KEYS = {
    "repo": "repo",
    "pr": "pr",
    "output_format": "format",
    "include_all": "all",
    "only_p0": "p0",
    "priority": "priority",
    "budget": "budget",
    "include_diff": "include_diff",
    "include_times": "include_times",
    "all_comments": "all_comments",
    "include_issue_comments": "include_issue_comments",
    "no_update_check": "no_update_check",
    "prompt_file": "prompt_file",
    "prompt_inline": "prompt_inline",
}


def _package_version() -> str:
    try:
        return importlib.metadata.version("prinbox")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _cli_overrides(ctx: click.Context, pr_arg: int | None) -> dict:
    """Collect only the options the user actually passed on the command line."""
    overrides = {}
    for param, key in _OVERRIDE_KEYS.items():
        source = ctx.get_parameter_source(param)
        if source in (ParameterSource.COMMANDLINE, ParameterSource.ENVIRONMENT):
            overrides[key] = ctx.params[param]
    if pr_arg is not None:
        overrides["pr"] = pr_arg
    return overrides


@click.command("prinbox")
@click.version_option(version=_package_version(), prog_name="prinbox")
@click.argument("pr_arg", metavar="[PR_NUMBER]", type=int, required=False)
@click.option("--repo", "-R", default=None, help="Repository in OWNER/REPO format.")
@click.option("--pr", "-p", "pr", type=int, default=0, help="Pull request number.")
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(FORMATS),
    default="md",
    show_default=True,
    help="Output format.",
)
@click.option("--all/--no-all", "include_all", default=False, help="Include resolved threads as well.")
@click.option("--p0/--no-p0", "only_p0", default=False, help="Show only P0 items.")
@click.option(
    "--priority",
    type=click.Choice(["all", *PRIORITIES], case_sensitive=False),
    default="all",
    help="Show only items of one priority.",
)
@click.option("--budget", type=click.IntRange(min=0), default=0, help="Limit number of threads (0 = unlimited).")
@click.option("--include-diff/--no-include-diff", default=False, help="Include diff context for each thread.")
@click.option("--include-times/--no-include-times", default=False, help="Include comment timestamps.")
@click.option(
    "--all-comments/--no-all-comments",
    default=False,
    help="Include all comments for each thread, not just first/latest.",
)
@click.option(
    "--include-issue-comments/--no-include-issue-comments",
    default=False,
    help="Include PR conversation (issue) comments.",
)
@click.option(
    "--no-update-check/--update-check",
    default=False,
    envvar="PRINBOX_NO_UPDATE_CHECK",
    help="Disable update checks.",
)
@click.option("--prompt-file", default=None, help="Prompt template file.")
@click.option("--prompt", "prompt_inline", default=None, help="Inline prompt template override.")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, pr_arg: int | None, verbose: bool, **_options):
    """Collect and organize PR review comments into an actionable inbox.

    \b
    Prompt templates may use these placeholders:
      {{REPO}} {{PR_NUMBER}} {{PR_TITLE}} {{PR_URL}} {{PR_GOAL}}
      {{THREADS_MD}} {{THREADS_JSON}}
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(repo_root=os.getcwd(), cli_overrides=_cli_overrides(ctx, pr_arg))
    except (OSError, ValueError) as e:
        raise click.ClickException(f"failed to load config: {e}")

    update_future = None if config.no_update_check else updatecheck.start(_package_version())

    if not config.repo or not config.pr:
        config = config.with_detected(
            repo=None if config.repo else current_repository(),
            pr=None if config.pr else current_pr_number(),
        )
    if not config.pr:
        raise click.UsageError("PR number required: specify with argument, --pr flag, or run from a PR branch.")
    if not config.repo:
        raise click.UsageError("Repository required: specify with --repo flag or run from a git repository.")

    token = resolve_github_token()
    if not token:
        raise click.UsageError("No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.")

    try:
        source = GithubThreadSource(config.repo, config.pr, token)
        result = build_inbox(source, config)
        output = render_output(result, config)
    except ThreadSourceError as e:
        raise click.ClickException(f"could not fetch review data: {e}")
    except (OSError, ValueError) as e:
        raise click.ClickException(str(e))

    if verbose:
        console.print(
            f"[dim]{result.meta.repo}#{result.meta.number}: "
            f"{result.thread_count} thread(s), {len(result.items)} item(s)[/dim]"
        )

    click.echo(output, nl=config.format == "json")

    message = updatecheck.try_receive(update_future)
    if message:
        console.print(f"[yellow]{message}[/yellow]")
