"""cartographer: map the dependencies between Kubernetes resources."""

__version__ = "0.4.0"
