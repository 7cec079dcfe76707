"""Member cluster registry schema.

Revision ID: 0001
Revises:
Create Date: 2024-12-24
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "member_clusters",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(63), unique=True, nullable=False),
        sa.Column("namespace", sa.String(253), nullable=False),
        sa.Column("labels", postgresql.JSONB, server_default="{}"),
        # Operator-owned
        sa.Column("api_endpoint", sa.String(512), nullable=False),
        sa.Column("ca_bundle", sa.LargeBinary, nullable=True),
        sa.Column("secret_name", sa.String(253), nullable=False),
        # Reconciler-owned, one document per pass
        sa.Column("status", postgresql.JSONB, nullable=False, server_default="{}"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column("last_probed_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "name ~ '^[a-z0-9][a-z0-9-]{1,61}[a-z0-9]$'",
            name="valid_name",
        ),
    )

    op.create_index("idx_member_clusters_namespace", "member_clusters", ["namespace"])
    op.execute(
        "CREATE INDEX idx_member_clusters_ready ON member_clusters "
        "USING GIN ((status->'conditions'))"
    )


def downgrade() -> None:
    op.drop_index("idx_member_clusters_ready", table_name="member_clusters")
    op.drop_index("idx_member_clusters_namespace", table_name="member_clusters")
    op.drop_table("member_clusters")
