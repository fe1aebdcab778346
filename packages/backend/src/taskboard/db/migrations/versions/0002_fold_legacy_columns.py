"""Fold legacy column names and role values into the current schema

Learn: Databases created by the old setup scripts used
projects.created_by and columns.name, and stored membership roles in
mixed case with an 'editor' role. This revision inspects the live
schema and only touches what is actually there, so it is safe to run
against a fresh database (where it does nothing) or twice.

Revision ID: 0002_fold_legacy_columns
Revises: 0001_initial_schema
Create Date: 2026-10-19 09:30:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0002_fold_legacy_columns"
down_revision: Union[str, None] = "0001_initial_schema"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _columns(table: str) -> set[str]:
    inspector = sa.inspect(op.get_bind())
    if not inspector.has_table(table):
        return set()
    return {c["name"] for c in inspector.get_columns(table)}


def _fold(table: str, legacy: str, canonical: str) -> None:
    """Make `canonical` the only column, keeping data from `legacy`."""
    existing = _columns(table)
    if legacy not in existing:
        return
    if canonical not in existing:
        op.alter_column(table, legacy, new_column_name=canonical)
        return
    op.execute(
        f'UPDATE "{table}" SET "{canonical}" = "{legacy}" '
        f'WHERE "{canonical}" IS NULL'
    )
    op.drop_column(table, legacy)


def upgrade() -> None:
    _fold("projects", "created_by", "creator_id")
    _fold("columns", "name", "title")

    if "role" in _columns("project_members"):
        op.execute("UPDATE project_members SET role = lower(role)")
        op.execute(
            "UPDATE project_members SET role = 'member' "
            "WHERE role NOT IN ('owner', 'admin', 'member')"
        )


def downgrade() -> None:
    # 0001 already creates creator_id and title, so the schema is back at
    # the 0001 shape. Legacy names and mixed-case roles are not recreated.
    pass
