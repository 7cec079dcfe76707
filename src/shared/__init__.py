"""Federation Cluster Registry Shared Package.

This package contains components shared by the registry service:
- models: Pydantic data models and the resource scheme
- database: SQLAlchemy ORM models
- redis_client: Redis client wrapper
- config: Configuration management
- observability: Structured logging
"""

__version__ = "0.1.0"
