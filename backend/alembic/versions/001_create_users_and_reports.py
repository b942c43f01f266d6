"""Create users and laporan_pengiriman tables

Revision ID: 001
Revises: None
Create Date: 2024-06-10 00:00:00.000000+00:00

What:  Credential Store (users) and Report Store (laporan_pengiriman).
Note:  Databases created through GET /init-db already match this revision;
       mark them with `alembic stamp 001`.

Rollback: downgrade() drops both tables (destructive, all data lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("username", sa.String(50), nullable=False, comment="Login name; globally unique"),
        sa.Column(
            "password_hash",
            sa.String(255),
            nullable=False,
            comment="bcrypt hash (salt and cost factor embedded)",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
    )

    op.create_table(
        "laporan_pengiriman",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("id_kurir", sa.Integer(), nullable=False),
        sa.Column("no_resi", sa.String(100), nullable=False),
        sa.Column("foto_path", sa.String(255), nullable=False),
        sa.Column("latitude", sa.String(50), nullable=False),
        sa.Column("longitude", sa.String(50), nullable=False),
        sa.Column(
            "status",
            sa.String(20),
            server_default=sa.text("'delivered'"),
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["id_kurir"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )

    # "This courier's reports, newest first" is the only read path
    op.create_index(
        "idx_laporan_kurir_created_at",
        "laporan_pengiriman",
        ["id_kurir", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("idx_laporan_kurir_created_at", table_name="laporan_pengiriman")
    op.drop_table("laporan_pengiriman")
    op.drop_table("users")
