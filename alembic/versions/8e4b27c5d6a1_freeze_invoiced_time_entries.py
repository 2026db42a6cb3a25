"""freeze invoiced time entries

Revision ID: 8e4b27c5d6a1
Revises: 3c1f8a2d9b10
Create Date: 2026-03-04 09:02:11.640218

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "8e4b27c5d6a1"
down_revision: Union[str, Sequence[str], None] = "3c1f8a2d9b10"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# The only permitted change to a claimed entry is releasing it
# (invoice_id -> NULL, every other column untouched) when its invoice is deleted.

_POSTGRES_UP = """
CREATE OR REPLACE FUNCTION time_entries_block_invoiced_mutation()
RETURNS trigger AS $$
BEGIN
    IF OLD.invoice_id IS NULL THEN
        IF TG_OP = 'DELETE' THEN
            RETURN OLD;
        END IF;
        RETURN NEW;
    END IF;

    IF TG_OP = 'DELETE' THEN
        RAISE EXCEPTION 'time entry % is invoiced and immutable', OLD.id;
    END IF;

    IF NEW.invoice_id IS NOT NULL
       OR (NEW.client_id, NEW.work_type_id, NEW.project_name, NEW.work_date, NEW.minutes_spent, NEW.detail)
          IS DISTINCT FROM
          (OLD.client_id, OLD.work_type_id, OLD.project_name, OLD.work_date, OLD.minutes_spent, OLD.detail)
    THEN
        RAISE EXCEPTION 'time entry % is invoiced and immutable', OLD.id;
    END IF;

    RETURN NEW;
END;
$$ LANGUAGE plpgsql;

DROP TRIGGER IF EXISTS trg_time_entries_block_invoiced_update ON time_entries;
CREATE TRIGGER trg_time_entries_block_invoiced_update
BEFORE UPDATE ON time_entries
FOR EACH ROW
EXECUTE FUNCTION time_entries_block_invoiced_mutation();

DROP TRIGGER IF EXISTS trg_time_entries_block_invoiced_delete ON time_entries;
CREATE TRIGGER trg_time_entries_block_invoiced_delete
BEFORE DELETE ON time_entries
FOR EACH ROW
EXECUTE FUNCTION time_entries_block_invoiced_mutation();
"""

_POSTGRES_DOWN = """
DROP TRIGGER IF EXISTS trg_time_entries_block_invoiced_update ON time_entries;
DROP TRIGGER IF EXISTS trg_time_entries_block_invoiced_delete ON time_entries;
DROP FUNCTION IF EXISTS time_entries_block_invoiced_mutation();
"""

_SQLITE_UP = [
    """
    CREATE TRIGGER IF NOT EXISTS trg_time_entries_block_invoiced_update
    BEFORE UPDATE ON time_entries
    FOR EACH ROW
    WHEN OLD.invoice_id IS NOT NULL AND (
        NEW.invoice_id IS NOT NULL
        OR NEW.client_id IS NOT OLD.client_id
        OR NEW.work_type_id IS NOT OLD.work_type_id
        OR NEW.project_name IS NOT OLD.project_name
        OR NEW.work_date IS NOT OLD.work_date
        OR NEW.minutes_spent IS NOT OLD.minutes_spent
        OR NEW.detail IS NOT OLD.detail
    )
    BEGIN
        SELECT RAISE(ABORT, 'time entry is invoiced and immutable');
    END;
    """,
    """
    CREATE TRIGGER IF NOT EXISTS trg_time_entries_block_invoiced_delete
    BEFORE DELETE ON time_entries
    FOR EACH ROW
    WHEN OLD.invoice_id IS NOT NULL
    BEGIN
        SELECT RAISE(ABORT, 'time entry is invoiced and immutable');
    END;
    """,
]

_SQLITE_DOWN = [
    "DROP TRIGGER IF EXISTS trg_time_entries_block_invoiced_update",
    "DROP TRIGGER IF EXISTS trg_time_entries_block_invoiced_delete",
]


def upgrade() -> None:
    """Upgrade schema."""
    dialect = op.get_bind().dialect.name
    if dialect == "postgresql":
        op.execute(_POSTGRES_UP)
    elif dialect == "sqlite":
        for statement in _SQLITE_UP:
            op.execute(sa.text(statement))


def downgrade() -> None:
    """Downgrade schema."""
    dialect = op.get_bind().dialect.name
    if dialect == "postgresql":
        op.execute(_POSTGRES_DOWN)
    elif dialect == "sqlite":
        for statement in _SQLITE_DOWN:
            op.execute(sa.text(statement))
