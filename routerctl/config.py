"""Configuration management for the routerctl application."""
import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()


class Config:
    """Application configuration with appliance defaults."""

    # Cluster layout
    NAMESPACE: str = os.getenv("ROUTERCTL_NAMESPACE", "semantic-router")
    KUBECONFIG: str = os.getenv(
        "KUBECONFIG", "/var/lib/microshift/resources/kubeadmin/kubeconfig"
    )
    FIELD_MANAGER: str = os.getenv("ROUTERCTL_FIELD_MANAGER", "routerctl")

    # Host paths
    TEMPLATE_DIR: Path = Path(
        os.getenv("ROUTERCTL_TEMPLATE_DIR", "/etc/semantic-router/templates")
    )
    MANIFEST_DIR: Path = Path(
        os.getenv(
            "ROUTERCTL_MANIFEST_DIR",
            "/usr/lib/microshift/manifests.d/semantic-router",
        )
    )
    DASHBOARD_JSON: Path = Path(
        os.getenv(
            "ROUTERCTL_DASHBOARD_JSON",
            "/etc/semantic-router/llm-router-dashboard.json",
        )
    )
    DEFAULT_CONFIG_FILE: Path = Path("./router.yaml")

    # Exposed node ports of the workloads
    API_PORT: int = int(os.getenv("ROUTERCTL_API_PORT", "30801"))
    DASHBOARD_PORT: int = int(os.getenv("ROUTERCTL_DASHBOARD_PORT", "30700"))
    GRAFANA_PORT: int = int(os.getenv("ROUTERCTL_GRAFANA_PORT", "30300"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_FORMAT: str = os.getenv(
        "LOG_FORMAT",
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    # Security
    REDACT_KEYS: tuple = ("access_key", "api_key", "api-key", "password", "secret", "token")
