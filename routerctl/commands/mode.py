"""Switch between full and slim deployment modes.

Updates the Kustomize entry point to select the matching overlay. MicroShift has to
be restarted for the new manifests to take effect.
"""
from pathlib import Path
from typing import Optional

import typer

from . import CONTEXT_SETTINGS, UsageExitCommand, fail
from ..config import Config
from ..errors import RouterctlError, UserInputError
from ..log import setup_logging
from ..modules.mode_store import DeploymentMode, ModeStore

app = typer.Typer(add_completion=False, context_settings=CONTEXT_SETTINGS)

NEXT_STEPS = """
Next steps:
  1. Restart MicroShift to apply the new manifests:
     sudo systemctl restart microshift
  2. Wait for MicroShift to restart (~30s)
  3. Create the configuration:
     sudo configure-router router.yaml
     (or: sudo configure-router --endpoint <url> --api-key <key> \\
            --model-coding <name> --model-general <name>)"""


def print_usage(store: ModeStore) -> None:
    typer.echo("Usage: select-mode [full|slim]")
    typer.echo("")
    typer.echo("Modes:")
    for mode in DeploymentMode:
        typer.echo(f"  {mode.value:<5} {mode.description}")
    if store.selector_path.is_file():
        current = store.read_mode()
        typer.echo("")
        typer.echo(f"Current mode: {current.value if current else 'unknown'}")


@app.command(cls=UsageExitCommand, context_settings=CONTEXT_SETTINGS)
def select_mode(
    mode: Optional[str] = typer.Argument(None, metavar="[full|slim]", show_default=False),
    manifest_dir: Path = typer.Option(Config.MANIFEST_DIR, "--manifest-dir", help="MicroShift manifest directory"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging"),
):
    """Select the deployment mode applied by MicroShift on its next start."""
    setup_logging(debug)
    store = ModeStore(manifest_dir)

    if not mode:
        print_usage(store)
        raise typer.Exit(code=1)

    try:
        try:
            selected = DeploymentMode(mode)
        except ValueError:
            raise UserInputError(f"Mode must be 'full' or 'slim', got '{mode}'") from None
        changed = store.set_mode(selected)
    except RouterctlError as e:
        fail(e, debug)

    typer.echo(f"Mode set to: {selected.value}" + ("" if changed else " (unchanged)"))
    typer.echo(NEXT_STEPS)


if __name__ == "__main__":
    app()
