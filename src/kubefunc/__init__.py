"""kubefunc - deploy function apps to Kubernetes."""

__version__ = "0.1.0"
