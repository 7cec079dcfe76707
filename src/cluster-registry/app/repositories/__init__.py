"""Data access repositories."""

from .cluster_repository import ClusterRepository

__all__ = ["ClusterRepository"]
