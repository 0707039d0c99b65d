"""edgek8s - Kubernetes bootstrap configuration for edge OS images."""

__version__ = "0.1.0"
