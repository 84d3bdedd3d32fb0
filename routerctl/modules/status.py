"""Operator-facing summary of a configuration pass."""
import logging
import os
import socket
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..config import Config
from .mode_store import DeploymentMode
from .providers import ProviderConfig
from .reconcile import ROUTER_DEPLOYMENT

logger = logging.getLogger("routerctl.status")

UNKNOWN_IP = "<IP>"
RULE = "━" * 71


@dataclass(frozen=True)
class ModelLine:
    name: str
    is_default: bool = False


@dataclass
class StatusReport:
    """Read-only view of the final configuration state."""
    mode: DeploymentMode
    namespace: str
    models: List[ModelLine] = field(default_factory=list)
    default_model: Optional[str] = None
    endpoints: List[Tuple[str, str]] = field(default_factory=list)
    workload: str = ROUTER_DEPLOYMENT
    dry_run: bool = False


def service_endpoints(mode: DeploymentMode, node_ip: str) -> List[Tuple[str, str]]:
    """Externally reachable URLs for the given mode."""
    endpoints = [("API", f"http://{node_ip}:{Config.API_PORT}/v1/chat/completions")]
    if mode == DeploymentMode.FULL:
        endpoints.append(("Dashboard", f"http://{node_ip}:{Config.DASHBOARD_PORT}"))
        endpoints.append(("Grafana", f"http://{node_ip}:{Config.GRAFANA_PORT}"))
    return endpoints


def build_report(
    config: ProviderConfig,
    mode: DeploymentMode,
    node_ip: Optional[str] = None,
    namespace: str = Config.NAMESPACE,
    dry_run: bool = False,
) -> StatusReport:
    return StatusReport(
        mode=DeploymentMode(mode),
        namespace=namespace,
        models=[ModelLine(name, config.is_default(name)) for name in config.model_names],
        default_model=config.default_model,
        endpoints=service_endpoints(mode, node_ip or UNKNOWN_IP),
        dry_run=dry_run,
    )


def get_template_path() -> str:
    """Get the absolute path to the templates directory."""
    return os.path.join(os.path.dirname(os.path.abspath(__file__)), 'templates')


def render_summary(report: StatusReport) -> str:
    """Render the summary text for ``report``."""
    env = Environment(
        loader=FileSystemLoader(get_template_path()),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )
    return env.get_template('summary.txt.j2').render(report=report, rule=RULE)


def local_ip() -> Optional[str]:
    """Address of the interface that routes outbound traffic, if any."""
    try:
        # No packet is sent for a UDP connect
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.connect(("8.8.8.8", 80))
            return s.getsockname()[0]
    except OSError as e:
        logger.debug(f"Failed to detect local IP: {e}")
        return None


def detect_node_ip(cluster) -> str:
    """Node address for the summary URLs: cluster node, then local interface."""
    return cluster.node_internal_ip() or local_ip() or UNKNOWN_IP
