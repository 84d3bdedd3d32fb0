import pytest
import yaml

from routerctl.errors import UserInputError
from routerctl.modules.mode_store import DeploymentMode, ModeStore


@pytest.mark.parametrize("mode", list(DeploymentMode))
def test_set_then_get_round_trips(manifest_dir, mode):
    store = ModeStore(manifest_dir)
    store.set_mode(mode)
    assert store.get_mode() == mode


def test_selector_references_exactly_one_overlay(manifest_dir):
    ModeStore(manifest_dir).set_mode(DeploymentMode.SLIM)
    doc = yaml.safe_load((manifest_dir / "kustomization.yaml").read_text())
    assert doc["kind"] == "Kustomization"
    assert doc["resources"] == ["overlays/slim"]


def test_setting_same_mode_twice_is_a_noop(manifest_dir):
    store = ModeStore(manifest_dir)
    assert store.set_mode(DeploymentMode.SLIM) is True
    before = (manifest_dir / "kustomization.yaml").stat().st_mtime_ns
    assert store.set_mode(DeploymentMode.SLIM) is False
    assert (manifest_dir / "kustomization.yaml").stat().st_mtime_ns == before
    assert store.set_mode(DeploymentMode.FULL) is True


def test_missing_selector_defaults_to_full(manifest_dir):
    assert ModeStore(manifest_dir).get_mode() == DeploymentMode.FULL


@pytest.mark.parametrize("content", [
    "resources: [overlays/medium]\n",
    "resources:\n  - overlays/full\n  - overlays/slim\n",
    "not: [valid\n",
    "- just\n- a list\n",
])
def test_unusable_selector_defaults_to_full(manifest_dir, content):
    (manifest_dir / "kustomization.yaml").write_text(content)
    assert ModeStore(manifest_dir).get_mode() == DeploymentMode.FULL


def test_hand_written_selector_is_understood(manifest_dir):
    (manifest_dir / "kustomization.yaml").write_text(
        "apiVersion: kustomize.config.k8s.io/v1beta1\n"
        "kind: Kustomization\n"
        "resources:\n"
        "  - ./overlays/slim/\n"
    )
    assert ModeStore(manifest_dir).get_mode() == DeploymentMode.SLIM


def test_set_mode_requires_manifest_dir(tmp_path):
    with pytest.raises(UserInputError, match="Manifest directory not found"):
        ModeStore(tmp_path / "missing").set_mode(DeploymentMode.FULL)
