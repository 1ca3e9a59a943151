"""add_execution_slots_table

Revision ID: b7c8d9e0f1a2
Revises:
Create Date: 2026-10-18 09:30:00.000000
"""

from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = "b7c8d9e0f1a2"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # Rows are inserted lazily by the allocator; only the table lives here.
    op.execute(
        """
        CREATE TABLE IF NOT EXISTS execution_slots (
            id SMALLINT NOT NULL,
            busy BOOLEAN NOT NULL DEFAULT FALSE,
            PRIMARY KEY (id)
        )
        """
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.execute("DROP TABLE IF EXISTS execution_slots")
