import pytest

from routerctl.errors import ClusterApplyError

ROUTER_YAML = """\
providers:
  models:
    - name: coder
      access_key: sk-1
      endpoints:
        - name: primary
          endpoint: https://api.example.com:443
    - name: general
      access_key: sk-2
      endpoint: api.example.com:443
  default_model: general
"""

ROUTER_TEMPLATE = """\
__PROVIDERS__
listeners:
  - name: http
    port: 8801
decisions:
  - name: code
    modelRefs:
      - model: __MODEL_0__
  - name: general
    modelRefs:
      - model: __MODEL_1__
"""

FULL_TEMPLATE = ROUTER_TEMPLATE + """\
observability:
  metrics:
    enabled: true
"""

ENVOY_TEMPLATE = """\
static_resources:
  clusters:
    - name: upstream
      load_assignment:
        endpoints:
          - lb_endpoints:
              - endpoint:
                  address:
                    socket_address:
                      address: __ENDPOINT_GENERAL__
                      port_value: 443
"""


class FakeCluster:
    """In-memory stand-in for ClusterClient with apply (overwrite) semantics."""

    def __init__(self, existing_deployments=("semantic-router", "grafana")):
        self.namespaces = set()
        self.objects = {}
        self.calls = []
        self.deployments = set(existing_deployments)
        self.changes = 0
        self.fail_on = None

    def ensure_namespace(self, name):
        self.calls.append(("namespace", name))
        if name in self.namespaces:
            return False
        self.namespaces.add(name)
        return True

    def _store(self, kind, namespace, name, data):
        assert namespace in self.namespaces, "namespace must exist before objects are applied"
        if name == self.fail_on:
            raise ClusterApplyError(f"Failed to apply {kind}/{name} in {namespace}: 500 Internal Server Error")
        key = (kind, namespace, name)
        if self.objects.get(key) != data:
            self.changes += 1
        self.objects[key] = dict(data)

    def apply_configmap(self, namespace, name, key, payload):
        self.calls.append(("configmap", name))
        self._store("ConfigMap", namespace, name, {key: payload})

    def apply_secret(self, namespace, name, entries):
        self.calls.append(("secret", name))
        self._store("Secret", namespace, name, entries)

    def restart_rollout(self, namespace, workload_name):
        self.calls.append(("restart", workload_name))
        return workload_name in self.deployments

    def node_internal_ip(self):
        return "192.0.2.10"


@pytest.fixture
def router_yaml(tmp_path):
    path = tmp_path / "router.yaml"
    path.write_text(ROUTER_YAML)
    return path


@pytest.fixture
def template_dir(tmp_path):
    directory = tmp_path / "templates"
    directory.mkdir()
    (directory / "config-full.yaml.tmpl").write_text(FULL_TEMPLATE)
    (directory / "config-slim.yaml.tmpl").write_text(ROUTER_TEMPLATE)
    (directory / "envoy-slim.yaml.tmpl").write_text(ENVOY_TEMPLATE)
    return directory


@pytest.fixture
def manifest_dir(tmp_path):
    directory = tmp_path / "manifests"
    directory.mkdir()
    return directory


@pytest.fixture
def dashboard(tmp_path):
    path = tmp_path / "llm-router-dashboard.json"
    path.write_text('{"title": "LLM Router"}\n')
    return path


@pytest.fixture
def fake_cluster():
    return FakeCluster()
