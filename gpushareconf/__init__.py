"""Configuration model and loader for GPU device sharing on Kubernetes nodes."""

__version__ = "0.17.0"

__all__ = [
    "common",
    "config",
    "duration",
    "flags",
    "imex",
    "replicas",
    "resources",
    "sharing",
    "strategy",
]