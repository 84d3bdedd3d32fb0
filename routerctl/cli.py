import typer

from routerctl.commands import CONTEXT_SETTINGS, UsageExitCommand, UsageExitGroup
from routerctl.commands import configure, mode

app = typer.Typer(
    cls=UsageExitGroup,
    add_completion=False,
    no_args_is_help=True,
    context_settings=CONTEXT_SETTINGS,
    help="routerctl - configure the semantic router appliance.",
)

# Same commands as the standalone configure-router / select-mode scripts
app.command("configure", cls=UsageExitCommand, context_settings=CONTEXT_SETTINGS)(configure.configure_router)
app.command("mode", cls=UsageExitCommand, context_settings=CONTEXT_SETTINGS)(mode.select_mode)


if __name__ == "__main__":
    app()
