import os
import stat

import pytest
from kubernetes import config as kube_config

from routerctl.errors import ConfigParseError, NoModelsError
from routerctl.utils import REDACTED, atomic_write_text, redact_sensitive_data, redact_text
from routerctl.utils.kube import load_kubeconfig


def test_redact_sensitive_data_nested():
    data = {
        "providers": {"models": [{"name": "a", "access_key": "sk-a"}]},
        "data": {"api-key-0": "c2stYQ==", "note": "keep"},
    }
    assert redact_sensitive_data(data) == {
        "providers": {"models": [{"name": "a", "access_key": REDACTED}]},
        "data": {"api-key-0": REDACTED, "note": "keep"},
    }


def test_atomic_write_text(tmp_path):
    target = tmp_path / "kustomization.yaml"
    target.write_text("old\n")
    atomic_write_text(target, "new\n", mode=0o600)
    assert target.read_text() == "new\n"
    assert stat.S_IMODE(os.stat(target).st_mode) == 0o600
    assert [p.name for p in tmp_path.iterdir()] == ["kustomization.yaml"]


def test_error_describe_is_single_line():
    err = NoModelsError("No models found\n  in router.yaml")
    assert err.describe() == "ConfigParseError: No models found in router.yaml"
    assert isinstance(err, ConfigParseError)


def test_load_kubeconfig_prefers_existing_path(tmp_path, monkeypatch):
    kubeconfig = tmp_path / "kubeconfig"
    kubeconfig.write_text("apiVersion: v1\n")
    loaded = []
    monkeypatch.setattr(kube_config, "load_kube_config", lambda config_file: loaded.append(config_file))

    assert load_kubeconfig(str(kubeconfig)) == str(kubeconfig.resolve())
    assert loaded == [str(kubeconfig.resolve())]


def test_load_kubeconfig_without_any_source(tmp_path, monkeypatch):
    def no_incluster():
        raise kube_config.ConfigException("not in a cluster")

    monkeypatch.setattr(kube_config, "load_incluster_config", no_incluster)
    with pytest.raises(FileNotFoundError, match="No usable kubeconfig"):
        load_kubeconfig(str(tmp_path / "missing"))


def test_redact_text_only_touches_sensitive_values():
    text = (
        "providers:\n"
        "  models:\n"
        "    - name: coder\n"
        "      access_key: e\n"
        "      endpoint: https://example.com\n"
        '{"api_key": "sk-json", "title": "edge"}\n'
        '  "token": "abc",\n'
    )
    assert redact_text(text) == (
        "providers:\n"
        "  models:\n"
        "    - name: coder\n"
        f"      access_key: {REDACTED}\n"
        "      endpoint: https://example.com\n"
        '{"api_key": "sk-json", "title": "edge"}\n'
        f'  "token": {REDACTED},\n'
    )


def test_redact_text_leaves_block_scalars():
    assert redact_text("password: |\n  hunter2\n") == "password: |\n  hunter2\n"
