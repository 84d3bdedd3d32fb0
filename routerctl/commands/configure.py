"""Post-boot configuration command.

Creates the ConfigMaps and Secret the semantic-router deployment needs. The Deployment
and Service manifests are applied by MicroShift on boot, but the pods stay in
CreateContainerConfigError until this command provides their configuration.

Can be re-run at any time to update configuration.
"""
import logging
from pathlib import Path
from typing import Optional

import typer

from . import CONTEXT_SETTINGS, UsageExitCommand, fail
from ..config import Config
from ..errors import RouterctlError, UserInputError
from ..log import setup_logging
from ..modules import providers
from ..modules.cluster import ClusterClient, DryRunCluster
from ..modules.mode_store import ModeStore
from ..modules.providers import ProviderConfig
from ..modules.reconcile import Reconciler, SecretLayout
from ..modules.status import build_report, detect_node_ip, render_summary

logger = logging.getLogger("routerctl.configure")

app = typer.Typer(add_completion=False, context_settings=CONTEXT_SETTINGS)


def resolve_provider_config(
    config_file: Optional[Path],
    endpoint: Optional[str] = None,
    api_key: Optional[str] = None,
    model_coding: Optional[str] = None,
    model_general: Optional[str] = None,
) -> ProviderConfig:
    """Load the provider config from a file or from the simplified flag set."""
    if not any([endpoint, api_key, model_coding, model_general]):
        return providers.load(config_file or Config.DEFAULT_CONFIG_FILE)

    if config_file is not None:
        raise UserInputError("Pass either a config file or the --endpoint/--api-key/--model-* flags, not both")

    required = {"--endpoint": endpoint, "--model-coding": model_coding, "--model-general": model_general}
    missing = [flag for flag, value in required.items() if not value]
    if missing:
        raise UserInputError(f"Missing required value(s): {', '.join(missing)}")

    logger.info("📄 Building config from command line flags...")
    return providers.from_overrides(endpoint, model_coding, model_general, api_key=api_key)


@app.command(cls=UsageExitCommand, context_settings=CONTEXT_SETTINGS)
def configure_router(
    config_file: Optional[Path] = typer.Argument(
        None, metavar="[CONFIG_FILE]", show_default=False,
        help="Provider config defining models and endpoints (default: ./router.yaml)",
    ),
    endpoint: Optional[str] = typer.Option(None, "--endpoint", help="Upstream endpoint URL (flag mode)"),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="Upstream API key (flag mode)"),
    model_coding: Optional[str] = typer.Option(None, "--model-coding", help="Model for coding requests (flag mode)"),
    model_general: Optional[str] = typer.Option(None, "--model-general", help="Default model (flag mode)"),
    single_key: bool = typer.Option(
        False, "--single-key", help="Store only the first key as 'api-key' instead of api-key-0..N"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the objects instead of applying them"),
    show_secrets: bool = typer.Option(False, "--show-secrets", help="Do not redact credentials in --dry-run output"),
    template_dir: Path = typer.Option(Config.TEMPLATE_DIR, "--template-dir", help="Directory with the mode templates"),
    manifest_dir: Path = typer.Option(Config.MANIFEST_DIR, "--manifest-dir", help="MicroShift manifest directory"),
    dashboard: Path = typer.Option(Config.DASHBOARD_JSON, "--dashboard", help="Grafana dashboard JSON (full mode)"),
    kubeconfig: str = typer.Option(Config.KUBECONFIG, "--kubeconfig", help="Path to the kubeconfig file"),
    namespace: str = typer.Option(Config.NAMESPACE, "--namespace", "-n", help="Target namespace"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging"),
):
    """Create or update the semantic-router configuration in the cluster.

    Example:
        cp /etc/semantic-router/templates/router.yaml.example router.yaml
        sudo configure-router router.yaml
    """
    setup_logging(debug)
    try:
        config = resolve_provider_config(config_file, endpoint, api_key, model_coding, model_general)

        mode = ModeStore(manifest_dir).get_mode()
        logger.info(f"🔎 Detected mode: {mode.value}")

        cluster = DryRunCluster(show_secrets=show_secrets) if dry_run else ClusterClient(kubeconfig=kubeconfig)
        reconciler = Reconciler(
            cluster,
            namespace=namespace,
            template_dir=template_dir,
            dashboard_path=dashboard,
            secret_layout=SecretLayout.SINGLE if single_key else SecretLayout.INDEXED,
        )
        result = reconciler.reconcile(config, mode)
    except RouterctlError as e:
        fail(e, debug)

    logger.debug(f"Applied: {', '.join(result.applied)}")
    report = build_report(config, mode, detect_node_ip(cluster), namespace=namespace, dry_run=dry_run)
    if dry_run:
        # Keep stdout a clean manifest stream
        typer.echo(cluster.dump(), nl=False)
        typer.echo(render_summary(report), nl=False, err=True)
    else:
        typer.echo("")
        typer.echo(render_summary(report), nl=False)


if __name__ == "__main__":
    app()
