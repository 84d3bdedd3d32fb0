"""Shared plumbing for routerctl commands."""
import logging

import click
import typer
from typer.core import TyperCommand, TyperGroup

from ..errors import RouterctlError

logger = logging.getLogger("routerctl.cli")

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


class UsageExitCommand(TyperCommand):
    """Command that exits with status 1 (not click's 2) on usage errors."""

    def parse_args(self, ctx: click.Context, args: list) -> list:
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as e:
            e.exit_code = 1
            raise


class UsageExitGroup(TyperGroup):
    """Group counterpart of :class:`UsageExitCommand`."""

    def parse_args(self, ctx: click.Context, args: list) -> list:
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as e:
            e.exit_code = 1
            raise

    def resolve_command(self, ctx: click.Context, args: list):
        try:
            return super().resolve_command(ctx, args)
        except click.UsageError as e:
            e.exit_code = 1
            raise


def fail(exc: RouterctlError, debug: bool = False) -> None:
    """Report ``exc`` on stderr and stop with exit status 1."""
    if debug:
        logger.debug("Pipeline aborted", exc_info=exc)
    typer.secho(exc.describe(), fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)
