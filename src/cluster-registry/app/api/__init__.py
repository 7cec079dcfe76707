"""API routers for Cluster Registry."""

from . import clusters, health

__all__ = ["clusters", "health"]
