"""Cluster access for routerctl.

ConfigMaps and Secrets are written with server-side apply: the full desired object is
sent in one request and the API server reconciles it against what exists. Applying the
same object twice changes nothing, which is what makes re-running routerctl safe.
"""
import base64
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import ClassVar, Dict, List, Optional, Tuple, Union

import yaml
from kubernetes import client
from kubernetes.client.rest import ApiException
from kubernetes.config import ConfigException
from kubernetes.dynamic import DynamicClient
from urllib3.exceptions import HTTPError

from ..config import Config
from ..errors import ClusterApplyError
from ..utils import redact_sensitive_data, redact_text
from ..utils.kube import load_kubeconfig

logger = logging.getLogger("routerctl.cluster")

MANAGED_BY_LABEL = "app.kubernetes.io/managed-by"
RESTARTED_AT_ANNOTATION = "kubectl.kubernetes.io/restartedAt"


@dataclass(frozen=True)
class ConfigMap:
    """Desired state of a ConfigMap."""
    namespace: str
    name: str
    data: Dict[str, str]
    kind: ClassVar[str] = "ConfigMap"

    def to_manifest(self, field_manager: str = Config.FIELD_MANAGER) -> Dict:
        return {
            "apiVersion": "v1",
            "kind": self.kind,
            "metadata": _metadata(self.namespace, self.name, field_manager),
            "data": dict(self.data),
        }


@dataclass(frozen=True)
class Secret:
    """Desired state of an Opaque Secret; values are plain text until serialized."""
    namespace: str
    name: str
    data: Dict[str, str]
    kind: ClassVar[str] = "Secret"

    def to_manifest(self, field_manager: str = Config.FIELD_MANAGER) -> Dict:
        return {
            "apiVersion": "v1",
            "kind": self.kind,
            "metadata": _metadata(self.namespace, self.name, field_manager),
            "type": "Opaque",
            "data": {
                key: base64.b64encode(value.encode("utf-8")).decode("ascii")
                for key, value in self.data.items()
            },
        }


ClusterObject = Union[ConfigMap, Secret]


class _LiteralDumper(yaml.SafeDumper):
    """Emits multi-line strings as literal blocks."""


def _represent_str(dumper: yaml.SafeDumper, value: str) -> yaml.ScalarNode:
    style = "|" if "\n" in value else None
    return dumper.represent_scalar("tag:yaml.org,2002:str", value, style=style)


_LiteralDumper.add_representer(str, _represent_str)


def _metadata(namespace: str, name: str, field_manager: str) -> Dict:
    return {
        "name": name,
        "namespace": namespace,
        "labels": {MANAGED_BY_LABEL: field_manager},
    }


def _describe_api_error(exc: Exception) -> str:
    if isinstance(exc, ApiException):
        try:
            message = json.loads(exc.body or "{}").get("message")
        except (TypeError, ValueError):
            message = None
        return f"{exc.status} {exc.reason}" + (f": {message}" if message else "")
    return str(exc)


class ClusterClient:
    """Applies routerctl objects through the Kubernetes API."""

    def __init__(
        self,
        api_client: Optional[client.ApiClient] = None,
        kubeconfig: Optional[str] = None,
        field_manager: str = Config.FIELD_MANAGER,
        core_api: Optional[client.CoreV1Api] = None,
        apps_api: Optional[client.AppsV1Api] = None,
        dynamic_client: Optional[DynamicClient] = None,
    ):
        """Initialize the cluster client.

        Args:
            api_client: Preconfigured API client; when omitted the kubeconfig is loaded
            kubeconfig: Path to the kubeconfig file (defaults to ``Config.KUBECONFIG``)
            field_manager: Field manager name used for server-side apply
            core_api: CoreV1Api override
            apps_api: AppsV1Api override
            dynamic_client: DynamicClient override
        """
        if api_client is None:
            try:
                load_kubeconfig(kubeconfig or Config.KUBECONFIG)
            except FileNotFoundError as e:
                raise ClusterApplyError(str(e)) from e
            except (ConfigException, yaml.YAMLError) as e:
                raise ClusterApplyError(f"Invalid kubeconfig {kubeconfig or Config.KUBECONFIG}: {e}") from e
            api_client = client.ApiClient()

        self.api_client = api_client
        self.field_manager = field_manager
        self.core = core_api or client.CoreV1Api(api_client)
        self.apps = apps_api or client.AppsV1Api(api_client)
        self._dynamic = dynamic_client

    @property
    def dynamic(self) -> DynamicClient:
        # DynamicClient runs API discovery when constructed
        if self._dynamic is None:
            try:
                self._dynamic = DynamicClient(self.api_client)
            except (ApiException, HTTPError) as e:
                raise ClusterApplyError(f"Cluster API unreachable: {_describe_api_error(e)}") from e
        return self._dynamic

    def ensure_namespace(self, name: str) -> bool:
        """Create the namespace unless it exists. Returns True if it was created."""
        try:
            self.core.read_namespace(name)
            logger.debug(f"Namespace {name} already exists")
            return False
        except ApiException as e:
            if e.status != 404:
                raise ClusterApplyError(f"Failed to read namespace {name}: {_describe_api_error(e)}") from e
        except HTTPError as e:
            raise ClusterApplyError(f"Cluster API unreachable: {e}") from e

        logger.info(f"📦 Creating namespace {name}...")
        body = {"apiVersion": "v1", "kind": "Namespace", "metadata": {"name": name}}
        try:
            self.core.create_namespace(body=body)
        except ApiException as e:
            if e.status == 409:
                return False
            raise ClusterApplyError(f"Failed to create namespace {name}: {_describe_api_error(e)}") from e
        except HTTPError as e:
            raise ClusterApplyError(f"Cluster API unreachable: {e}") from e
        return True

    def apply(self, obj: ClusterObject) -> None:
        """Server-side apply ``obj`` as a whole."""
        manifest = obj.to_manifest(self.field_manager)
        try:
            resource = self.dynamic.resources.get(api_version="v1", kind=obj.kind)
            resource.server_side_apply(
                body=manifest,
                name=obj.name,
                namespace=obj.namespace,
                field_manager=self.field_manager,
                force_conflicts=True,
            )
        except (ApiException, HTTPError) as e:
            raise ClusterApplyError(
                f"Failed to apply {obj.kind}/{obj.name} in {obj.namespace}: {_describe_api_error(e)}"
            ) from e
        logger.info(f"✅ {obj.kind}/{obj.name} applied")

    def apply_configmap(self, namespace: str, name: str, key: str, payload: str) -> None:
        self.apply(ConfigMap(namespace=namespace, name=name, data={key: payload}))

    def apply_secret(self, namespace: str, name: str, entries: Dict[str, str]) -> None:
        self.apply(Secret(namespace=namespace, name=name, data=dict(entries)))

    def restart_rollout(self, namespace: str, workload_name: str) -> bool:
        """Restart a deployment's pods, like ``kubectl rollout restart``.

        Best effort: failures are logged and reported through the return value, since
        the deployment may not exist yet on a first configuration pass.
        """
        restarted_at = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        body = {"spec": {"template": {"metadata": {"annotations": {RESTARTED_AT_ANNOTATION: restarted_at}}}}}
        try:
            self.apps.patch_namespaced_deployment(name=workload_name, namespace=namespace, body=body)
        except ApiException as e:
            if e.status == 404:
                logger.info(f"↪️ deployment/{workload_name} not found in {namespace}, skipping restart")
            else:
                logger.warning(f"⚠️  Could not restart deployment/{workload_name}: {_describe_api_error(e)}")
            return False
        except HTTPError as e:
            logger.warning(f"⚠️  Could not restart deployment/{workload_name}: {e}")
            return False
        logger.info(f"🔄 Restarted deployment/{workload_name}")
        return True

    def node_internal_ip(self) -> Optional[str]:
        """InternalIP address of the first node, if the API reports one."""
        try:
            nodes = self.core.list_node()
        except (ApiException, HTTPError) as e:
            logger.debug(f"Could not list nodes: {_describe_api_error(e)}")
            return None
        if not nodes.items:
            return None
        for address in nodes.items[0].status.addresses or []:
            if address.type == "InternalIP":
                return address.address
        return None


class DryRunCluster:
    """Records what would be applied instead of talking to the cluster."""

    def __init__(self, show_secrets: bool = False, field_manager: str = Config.FIELD_MANAGER):
        self.show_secrets = show_secrets
        self.field_manager = field_manager
        self.namespaces: List[str] = []
        self.objects: List[ClusterObject] = []
        self.restarts: List[Tuple[str, str]] = []

    def ensure_namespace(self, name: str) -> bool:
        logger.info(f"[dry-run] would ensure namespace {name}")
        self.namespaces.append(name)
        return False

    def apply(self, obj: ClusterObject) -> None:
        logger.info(f"[dry-run] would apply {obj.kind}/{obj.name}")
        self.objects.append(obj)

    def apply_configmap(self, namespace: str, name: str, key: str, payload: str) -> None:
        self.apply(ConfigMap(namespace=namespace, name=name, data={key: payload}))

    def apply_secret(self, namespace: str, name: str, entries: Dict[str, str]) -> None:
        self.apply(Secret(namespace=namespace, name=name, data=dict(entries)))

    def restart_rollout(self, namespace: str, workload_name: str) -> bool:
        logger.info(f"[dry-run] would restart deployment/{workload_name}")
        self.restarts.append((namespace, workload_name))
        return False

    def node_internal_ip(self) -> Optional[str]:
        return None

    def manifests(self) -> List[Dict]:
        manifests = [obj.to_manifest(self.field_manager) for obj in self.objects]
        if self.show_secrets:
            return manifests

        redacted = []
        for manifest in manifests:
            if manifest["kind"] == "Secret":
                redacted.append(redact_sensitive_data(manifest))
                continue
            # Credential fields inside spliced config documents
            data = {key: redact_text(payload) for key, payload in manifest["data"].items()}
            redacted.append(dict(manifest, data=data))
        return redacted

    def dump(self) -> str:
        """Multi-document YAML of everything that would be applied."""
        return yaml.dump_all(
            self.manifests(), Dumper=_LiteralDumper, default_flow_style=False, sort_keys=False
        )
