"""create weekly course schedules

Revision ID: 20261019_0003
Revises: 20261019_0002
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0003"
down_revision = "20261019_0002"
branch_labels = None
depends_on = None


def upgrade() -> None:
    session_type = sa.Enum("lecture", "lab", "tutorial", "seminar", name="session_type")

    op.create_table(
        "course_schedules",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("course_id", sa.String(length=36), nullable=False),
        sa.Column("day_of_week", sa.String(length=9), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("room", sa.String(length=200), nullable=True),
        sa.Column("session_type", session_type, nullable=False, server_default="lecture"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_course_schedules_course_id", "course_schedules", ["course_id"], unique=False)
    op.create_index("ix_course_schedules_day", "course_schedules", ["day_of_week"], unique=False)

    with op.batch_alter_table("lectures") as batch_op:
        batch_op.add_column(sa.Column("schedule_id", sa.String(length=36), nullable=True))


def downgrade() -> None:
    with op.batch_alter_table("lectures") as batch_op:
        batch_op.drop_column("schedule_id")

    op.drop_index("ix_course_schedules_day", table_name="course_schedules")
    op.drop_index("ix_course_schedules_course_id", table_name="course_schedules")
    op.drop_table("course_schedules")

    bind = op.get_bind()
    sa.Enum(name="session_type").drop(bind, checkfirst=True)
