import pytest
import yaml

from routerctl.errors import (
    ConfigNotFoundError,
    ConfigParseError,
    NoModelsError,
    UnknownDefaultModelError,
    UserInputError,
)
from routerctl.modules import providers
from routerctl.modules.providers import upstream_hostname


def write(tmp_path, text):
    path = tmp_path / "router.yaml"
    path.write_text(text)
    return path


def test_load_extracts_models_in_declaration_order(tmp_path):
    path = write(tmp_path, """
providers:
  models:
    - name: "alpha"
    - name: 'beta'
    - name: gamma
""")
    config = providers.load(path)
    assert config.model_names == ["alpha", "beta", "gamma"]
    assert config.default_model is None


def test_nested_endpoint_names_are_not_models(router_yaml):
    config = providers.load(router_yaml)
    assert config.model_names == ["coder", "general"]
    assert "primary" not in config.model_names


def test_endpoint_resolution(router_yaml):
    config = providers.load(router_yaml)
    coder, general = config.models
    assert coder.endpoint == "https://api.example.com:443"
    assert general.endpoint == "api.example.com:443"
    assert config.first_endpoint == "https://api.example.com:443"
    assert config.upstream_host == "api.example.com"


def test_source_text_is_verbatim(router_yaml):
    assert providers.load(router_yaml).source_text == router_yaml.read_text()


def test_access_keys_skip_models_without_one(tmp_path):
    path = write(tmp_path, """
providers:
  models:
    - name: a
      access_key: sk-a
    - name: b
    - name: c
      access_key: "  "
    - name: d
      access_key: sk-d
""")
    config = providers.load(path)
    assert config.access_keys == ["sk-a", "sk-d"]
    assert config.models[1].access_key is None
    assert config.models[2].access_key is None


def test_default_model(router_yaml):
    config = providers.load(router_yaml)
    assert config.default_model == "general"
    assert config.is_default("general")
    assert not config.is_default("coder")


def test_missing_file(tmp_path):
    with pytest.raises(ConfigNotFoundError) as exc_info:
        providers.load(tmp_path / "nope.yaml")
    assert isinstance(exc_info.value, UserInputError)
    assert "Config file not found" in str(exc_info.value)


@pytest.mark.parametrize("text", [
    "",
    "providers: {}\n",
    "providers:\n  models: []\n  default_model: x\n",
    "other: 1\n",
])
def test_no_models(tmp_path, text):
    with pytest.raises(NoModelsError, match="No models found"):
        providers.load(write(tmp_path, text))


def test_unknown_default_model_is_rejected(tmp_path):
    path = write(tmp_path, """
providers:
  models:
    - name: a
  default_model: b
""")
    with pytest.raises(UnknownDefaultModelError) as exc_info:
        providers.load(path)
    assert isinstance(exc_info.value, ConfigParseError)


@pytest.mark.parametrize("text,message", [
    ("providers: [1, 2]\n", "must be a mapping"),
    ("providers:\n  models: coder\n", "must be a list"),
    ("providers:\n  models:\n    - name: a\n    - name: a\n", "Duplicate model name"),
    ("providers:\n  models:\n    - name: ''\n", "must not be empty"),
    ("providers:\n  models:\n    - access_key: sk\n", "providers.models.0.name"),
    ("providers:\n  models:\n    - name: [a, b]\n", "scalar"),
    ("providers: [unclosed\n", "Invalid YAML"),
])
def test_malformed_documents(tmp_path, text, message):
    with pytest.raises(ConfigParseError, match=message):
        providers.load(write(tmp_path, text))


def test_errors_are_single_line(tmp_path):
    with pytest.raises(ConfigParseError) as exc_info:
        providers.load(write(tmp_path, "providers: [unclosed\n"))
    assert "\n" not in str(exc_info.value)


@pytest.mark.parametrize("endpoint,host", [
    ("https://api.example.com", "api.example.com"),
    ("http://10.0.0.5:8000", "10.0.0.5"),
    ("vllm.internal:8000", "vllm.internal"),
    ("https://api.example.com:443/v1", "api.example.com"),
    ("plain-host", "plain-host"),
])
def test_upstream_hostname(endpoint, host):
    assert upstream_hostname(endpoint) == host


def test_from_overrides():
    config = providers.from_overrides("https://llm.example.com:8443", "qwen-coder", "llama", api_key="sk-x")
    assert config.model_names == ["qwen-coder", "llama"]
    assert config.default_model == "llama"
    assert config.access_keys == ["sk-x", "sk-x"]
    assert config.upstream_host == "llm.example.com"
    assert yaml.safe_load(config.source_text)["providers"]["default_model"] == "llama"


def test_from_overrides_without_key():
    config = providers.from_overrides("https://llm.example.com", "a", "b")
    assert config.access_keys == []
    assert "access_key" not in config.source_text


def test_from_overrides_rejects_duplicate_models():
    with pytest.raises(ConfigParseError, match="Duplicate"):
        providers.from_overrides("https://llm.example.com", "same", "same")
