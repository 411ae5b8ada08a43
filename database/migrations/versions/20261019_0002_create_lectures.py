"""create lectures and attendance

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0002"
down_revision = "20261019_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    delivery_mode = sa.Enum("physical", "online", name="delivery_mode")
    lecture_status = sa.Enum("scheduled", "completed", "cancelled", name="lecture_status")
    attendance_status = sa.Enum("present", "absent", "late", "excused", name="attendance_status")

    op.create_table(
        "lectures",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("course_id", sa.String(length=36), nullable=False),
        sa.Column("module_id", sa.String(length=36), nullable=True),
        sa.Column("lecture_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("delivery_mode", delivery_mode, nullable=False),
        sa.Column("location", sa.String(length=200), nullable=True),
        sa.Column("meeting_link", sa.String(length=500), nullable=True),
        sa.Column("topic", sa.Text(), nullable=True),
        sa.Column("conducted_by", sa.String(length=36), nullable=False),
        sa.Column("week_number", sa.Integer(), nullable=False),
        sa.Column("status", lecture_status, nullable=False, server_default="scheduled"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_lectures_course_id", "lectures", ["course_id"], unique=False)
    op.create_index("ix_lectures_lecture_date", "lectures", ["lecture_date"], unique=False)
    op.create_index("ix_lectures_date_faculty", "lectures", ["lecture_date", "conducted_by"], unique=False)

    op.create_table(
        "lecture_attendance",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("lecture_id", sa.String(length=36), nullable=False),
        sa.Column("student_id", sa.String(length=36), nullable=False),
        sa.Column("status", attendance_status, nullable=False, server_default="absent"),
        sa.Column("marked_by", sa.String(length=36), nullable=True),
        sa.Column("marked_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("lecture_id", "student_id", name="uq_lecture_attendance_lecture_student"),
    )
    op.create_index("ix_lecture_attendance_lecture_id", "lecture_attendance", ["lecture_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_lecture_attendance_lecture_id", table_name="lecture_attendance")
    op.drop_table("lecture_attendance")
    op.drop_index("ix_lectures_date_faculty", table_name="lectures")
    op.drop_index("ix_lectures_lecture_date", table_name="lectures")
    op.drop_index("ix_lectures_course_id", table_name="lectures")
    op.drop_table("lectures")

    bind = op.get_bind()
    sa.Enum(name="attendance_status").drop(bind, checkfirst=True)
    sa.Enum(name="lecture_status").drop(bind, checkfirst=True)
    sa.Enum(name="delivery_mode").drop(bind, checkfirst=True)
