"""Initial planner schema: todos, kanban boards, archive policy and archive log.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    ]


def _owner() -> sa.Column:
    return sa.Column(
        "owner_id",
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # -----------------------------------------------------------------------
    # 1. Users and boards
    # -----------------------------------------------------------------------

    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.Text(), nullable=True, unique=True),
        sa.Column("display_name", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "custom_statuses",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _owner(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("color", sa.Text(), nullable=True),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_custom_statuses_owner_id", "custom_statuses", ["owner_id"])

    op.create_table(
        "projects",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _owner(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("color", sa.Text(), nullable=True),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_projects_owner_id", "projects", ["owner_id"])

    op.create_table(
        "task_lists",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _owner(),
        sa.Column(
            "project_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("kind", sa.Text(), nullable=False, server_default="CUSTOM"),
        sa.Column("color", sa.Text(), nullable=True),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.CheckConstraint(
            "kind IN ('TODO', 'IN_PROGRESS', 'COMPLETE', 'CUSTOM')", name="task_lists_kind_valid"
        ),
    )
    op.create_index("ix_task_lists_owner_id", "task_lists", ["owner_id"])
    op.create_index("ix_task_lists_project_id", "task_lists", ["project_id"])

    op.create_table(
        "tasks",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _owner(),
        sa.Column(
            "task_list_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("task_lists.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.Text(), nullable=False, server_default="TODO"),
        sa.Column("priority", sa.Text(), nullable=False, server_default="MEDIUM"),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_tasks_owner_id", "tasks", ["owner_id"])
    op.create_index("ix_tasks_scope", "tasks", ["owner_id", "task_list_id", "position"])

    # -----------------------------------------------------------------------
    # 2. Todos
    # -----------------------------------------------------------------------

    op.create_table(
        "todos",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _owner(),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.Text(), nullable=False, server_default="WAIT"),
        sa.Column(
            "custom_status_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("custom_statuses.id"),
            nullable=True,
        ),
        sa.Column("priority", sa.Text(), nullable=False, server_default="MEDIUM"),
        sa.Column("tags", postgresql.JSONB(), nullable=False, server_default="[]"),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "task_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("tasks.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("archived_bucket", sa.Text(), nullable=True),
        sa.Column("archived_reason", sa.Text(), nullable=True),
        sa.Column("archived_by_system", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.CheckConstraint(
            "(archived_at IS NULL) = (archived_bucket IS NULL)", name="todos_archive_fields_paired"
        ),
    )
    op.create_index("ix_todos_owner_id", "todos", ["owner_id"])
    op.create_index("ix_todos_archived_at", "todos", ["archived_at"])
    op.create_index("ix_todos_scope", "todos", ["owner_id", "status", "custom_status_id", "position"])

    # -----------------------------------------------------------------------
    # 3. Archive policy and archive log
    # -----------------------------------------------------------------------

    op.create_table(
        "archive_policies",
        sa.Column(
            "owner_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("auto_archive_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("auto_archive_time", sa.Text(), nullable=False, server_default="09:00"),
        sa.Column("unfinished_grace_days", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("unfinished_grace_unit", sa.Text(), nullable=False, server_default="DAY"),
        sa.Column("cleanup_finished_after_days", sa.Integer(), nullable=True),
        sa.Column("cleanup_unfinished_after_days", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("unfinished_grace_days BETWEEN 0 AND 720", name="archive_policies_grace_range"),
    )
    op.create_index(
        "ix_archive_policies_auto_archive_enabled", "archive_policies", ["auto_archive_enabled"]
    )

    # todo_id has no foreign key: entries outlive purged todos
    op.create_table(
        "archive_logs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("todo_id", postgresql.UUID(as_uuid=True), nullable=False),
        _owner(),
        sa.Column("bucket", sa.Text(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("auto_archived", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("snapshot", postgresql.JSONB(), nullable=False, server_default="{}"),
    )
    op.create_index("ix_archive_logs_todo_id", "archive_logs", ["todo_id"])
    op.create_index(
        "ix_archive_logs_owner_bucket_at", "archive_logs", ["owner_id", "bucket", "archived_at"]
    )

    # -----------------------------------------------------------------------
    # 4. Archive log entries are never updated (retention may delete them)
    # -----------------------------------------------------------------------

    op.execute("""
        CREATE OR REPLACE FUNCTION prevent_archive_log_update()
        RETURNS TRIGGER AS $$
        BEGIN
            RAISE EXCEPTION 'Archive log entries are immutable. UPDATE is not permitted.';
        END;
        $$ LANGUAGE plpgsql
    """)
    op.execute("""
        CREATE TRIGGER archive_logs_immutable
        BEFORE UPDATE ON archive_logs
        FOR EACH ROW EXECUTE FUNCTION prevent_archive_log_update()
    """)


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS archive_logs_immutable ON archive_logs")
    op.execute("DROP FUNCTION IF EXISTS prevent_archive_log_update()")

    # Drop tables in reverse dependency order
    op.drop_table("archive_logs")
    op.drop_table("archive_policies")
    op.drop_table("todos")
    op.drop_table("tasks")
    op.drop_table("task_lists")
    op.drop_table("projects")
    op.drop_table("custom_statuses")
    op.drop_table("users")
