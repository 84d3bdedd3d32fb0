"""
Configuration pipeline: mode store, provider config, rendering, cluster apply, status.
"""
from .mode_store import DeploymentMode, ModeStore
from .providers import ModelSpec, ProviderConfig
from .render import Placeholder, ModelSlot, RenderTemplate, RenderedConfig, render
from .reconcile import Reconciler, ReconcileResult, SecretLayout
from .status import StatusReport, build_report, render_summary

__all__ = [
    'DeploymentMode',
    'ModeStore',
    'ModelSpec',
    'ProviderConfig',
    'Placeholder',
    'ModelSlot',
    'RenderTemplate',
    'RenderedConfig',
    'render',
    'Reconciler',
    'ReconcileResult',
    'SecretLayout',
    'StatusReport',
    'build_report',
    'render_summary',
]
