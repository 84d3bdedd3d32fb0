import logging
import os
from pathlib import Path
from typing import Optional

from kubernetes import config

logger = logging.getLogger("routerctl.kube")


def load_kubeconfig(path: Optional[str] = None) -> Optional[str]:
    """
    Load cluster credentials for the kubernetes client.

    Order: an explicit kubeconfig path, then the in-cluster service account. Returns
    the kubeconfig path used, or None when the in-cluster config was loaded.
    """
    # Local path loading
    if path:
        resolved = Path(os.path.expanduser(path)).resolve()
        if resolved.exists():
            config.load_kube_config(config_file=str(resolved))
            logger.debug(f"Loaded kubeconfig from {resolved}")
            return str(resolved)
        logger.debug(f"Kubeconfig not found at {resolved}, trying in-cluster config")

    try:
        config.load_incluster_config()
    except config.ConfigException as e:
        raise FileNotFoundError(
            f"❌ No usable kubeconfig: {path or 'none given'} does not exist and no in-cluster config ({e})"
        ) from e
    return None
