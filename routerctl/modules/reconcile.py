"""Turn a provider configuration and deployment mode into cluster objects."""
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from ..config import Config
from ..errors import ConfigParseError, RenderError
from .cluster import ClusterObject, ConfigMap, Secret
from .mode_store import DeploymentMode
from .providers import ProviderConfig
from .render import RenderedConfig, provider_context, render_file

logger = logging.getLogger("routerctl.reconcile")

ROUTER_CONFIGMAP = "router-config"
ROUTER_CONFIG_KEY = "config.yaml"
ENVOY_CONFIGMAP = "envoy-config"
ENVOY_CONFIG_KEY = "envoy.yaml"
CREDENTIALS_SECRET = "litellm-credentials"
DASHBOARD_CONFIGMAP = "grafana-dashboard"
DASHBOARD_KEY = "llm-router-dashboard.json"

ROUTER_DEPLOYMENT = "semantic-router"
GRAFANA_DEPLOYMENT = "grafana"

ROUTER_TEMPLATES = {
    DeploymentMode.FULL: "config-full.yaml.tmpl",
    DeploymentMode.SLIM: "config-slim.yaml.tmpl",
}
ENVOY_TEMPLATE = "envoy-slim.yaml.tmpl"


class SecretLayout(str, Enum):
    """How credentials are laid out in the credentials Secret."""
    INDEXED = 'indexed'  # api-key-0 .. api-key-N
    SINGLE = 'single'    # api-key, first credential only


def credential_entries(access_keys: List[str], layout: SecretLayout = SecretLayout.INDEXED) -> Dict[str, str]:
    """Secret entries for the given credentials, in declaration order."""
    if not access_keys:
        return {}
    if layout == SecretLayout.SINGLE:
        return {"api-key": access_keys[0]}
    return {f"api-key-{index}": key for index, key in enumerate(access_keys)}


@dataclass
class ReconcileResult:
    """What a reconciliation pass produced."""
    mode: DeploymentMode
    namespace: str
    objects: List[ClusterObject] = field(default_factory=list)
    rendered: Dict[str, RenderedConfig] = field(default_factory=dict)
    restarts: Dict[str, bool] = field(default_factory=dict)
    namespace_created: bool = False

    @property
    def applied(self) -> List[str]:
        return [f"{obj.kind}/{obj.name}" for obj in self.objects]


class Reconciler:
    """Builds the desired objects for one pass and applies them in order."""

    def __init__(
        self,
        cluster,
        namespace: str = Config.NAMESPACE,
        template_dir: Path = Config.TEMPLATE_DIR,
        dashboard_path: Optional[Path] = Config.DASHBOARD_JSON,
        secret_layout: SecretLayout = SecretLayout.INDEXED,
    ):
        """Initialize the reconciler.

        Args:
            cluster: ClusterClient or DryRunCluster the objects are applied through
            namespace: Namespace all objects live in
            template_dir: Directory holding the mode templates
            dashboard_path: Grafana dashboard JSON shipped on the host
            secret_layout: Credential layout of the Secret
        """
        self.cluster = cluster
        self.namespace = namespace
        self.template_dir = Path(template_dir)
        self.dashboard_path = Path(dashboard_path) if dashboard_path else None
        self.secret_layout = SecretLayout(secret_layout)

    def render_router_config(self, config: ProviderConfig, mode: DeploymentMode) -> RenderedConfig:
        scalars, block = provider_context(config)
        return render_file(self.template_dir / ROUTER_TEMPLATES[mode], scalars, block)

    def render_envoy_config(self, config: ProviderConfig) -> RenderedConfig:
        upstream = config.upstream_host
        if not upstream:
            raise ConfigParseError("Could not extract endpoint from config for Envoy")
        logger.info(f"🧩 Rendering Envoy config (upstream: {upstream})...")
        scalars, _ = provider_context(config)
        return render_file(self.template_dir / ENVOY_TEMPLATE, scalars)

    def read_dashboard(self, mode: DeploymentMode) -> Optional[str]:
        if mode != DeploymentMode.FULL or self.dashboard_path is None:
            return None
        if not self.dashboard_path.is_file():
            logger.debug(f"No dashboard asset at {self.dashboard_path}, skipping")
            return None
        try:
            return self.dashboard_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise RenderError(f"Could not read dashboard {self.dashboard_path}: {e}") from e

    def plan(self, config: ProviderConfig, mode: DeploymentMode, result: Optional[ReconcileResult] = None) -> List[ClusterObject]:
        """Render every document and return the desired objects in apply order.

        Nothing touches the cluster here, so a render failure leaves it unchanged.
        """
        mode = DeploymentMode(mode)
        objects: List[ClusterObject] = []
        rendered: Dict[str, RenderedConfig] = {}

        router = self.render_router_config(config, mode)
        rendered[ROUTER_CONFIGMAP] = router
        objects.append(ConfigMap(self.namespace, ROUTER_CONFIGMAP, {ROUTER_CONFIG_KEY: router.text}))

        if mode == DeploymentMode.SLIM:
            envoy = self.render_envoy_config(config)
            rendered[ENVOY_CONFIGMAP] = envoy
            objects.append(ConfigMap(self.namespace, ENVOY_CONFIGMAP, {ENVOY_CONFIG_KEY: envoy.text}))

        entries = credential_entries(config.access_keys, self.secret_layout)
        if entries:
            objects.append(Secret(self.namespace, CREDENTIALS_SECRET, entries))
        else:
            logger.info("No access_key in config, skipping Secret/%s", CREDENTIALS_SECRET)

        dashboard = self.read_dashboard(mode)
        if dashboard is not None:
            objects.append(ConfigMap(self.namespace, DASHBOARD_CONFIGMAP, {DASHBOARD_KEY: dashboard}))

        if result is not None:
            result.rendered.update(rendered)
        return objects

    def _apply(self, obj: ClusterObject) -> None:
        if isinstance(obj, Secret):
            self.cluster.apply_secret(obj.namespace, obj.name, obj.data)
            return
        # routerctl ConfigMaps carry exactly one key
        (key, payload), = obj.data.items()
        self.cluster.apply_configmap(obj.namespace, obj.name, key, payload)

    def reconcile(self, config: ProviderConfig, mode: DeploymentMode) -> ReconcileResult:
        """Run one pass: render, ensure namespace, apply objects, restart workloads."""
        mode = DeploymentMode(mode)
        logger.info(f"🚀 Reconciling {self.namespace} ({mode.value} mode)")
        result = ReconcileResult(mode=mode, namespace=self.namespace)

        objects = self.plan(config, mode, result)

        result.namespace_created = self.cluster.ensure_namespace(self.namespace)
        for obj in objects:
            self._apply(obj)
            result.objects.append(obj)

        workloads = [ROUTER_DEPLOYMENT]
        if mode == DeploymentMode.FULL:
            workloads.append(GRAFANA_DEPLOYMENT)
        for workload in workloads:
            result.restarts[workload] = self.cluster.restart_rollout(self.namespace, workload)

        return result
