"""routerctl - post-boot configuration for the semantic router appliance."""

__version__ = "0.1.0"
