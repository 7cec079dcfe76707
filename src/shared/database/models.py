"""SQLAlchemy ORM models.

The clusters table is the cluster registry. Spec columns are written by
the operator path, the status column only by the reconciler. Status is a
single JSON document so each pass lands in one UPDATE.
"""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, DateTime, Index, LargeBinary, String, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from .base import Base

JSONDocument = JSON().with_variant(JSONB(), "postgresql")


class ClusterModel(Base):
    """Member cluster registration."""

    __tablename__ = "member_clusters"
    __table_args__ = (
        Index("idx_member_clusters_namespace", "namespace"),
    )

    id: Mapped[UUID] = mapped_column(Uuid(), primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(63), unique=True, nullable=False)
    namespace: Mapped[str] = mapped_column(String(253), nullable=False)
    labels: Mapped[dict[str, Any]] = mapped_column(JSONDocument, default=dict)

    # Operator-owned
    api_endpoint: Mapped[str] = mapped_column(String(512), nullable=False)
    ca_bundle: Mapped[bytes | None] = mapped_column(LargeBinary)
    secret_name: Mapped[str] = mapped_column(String(253), nullable=False)

    # Reconciler-owned
    status: Mapped[dict[str, Any]] = mapped_column(JSONDocument, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    last_probed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
