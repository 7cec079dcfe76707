"""Cluster Registry service."""
