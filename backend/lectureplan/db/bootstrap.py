from __future__ import annotations

import logging

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine

from lectureplan import models  # noqa: F401
from lectureplan.db.base import Base
from lectureplan.db.session import engine as default_engine
from lectureplan.services.calendar import LEGACY_PERIOD_LABELS

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "courses": {"id", "code", "semester_period", "year"},
    "course_modules": {"id", "course_id", "sequence", "duration_weeks"},
    "course_schedules": {"id", "course_id", "day_of_week", "start_time", "end_time", "room", "session_type"},
    "enrollments": {"id", "student_id", "course_id", "status"},
    "faculty": {"id", "name", "email"},
    "lectures": {
        "id",
        "course_id",
        "module_id",
        "schedule_id",
        "lecture_date",
        "start_time",
        "end_time",
        "delivery_mode",
        "location",
        "meeting_link",
        "conducted_by",
        "week_number",
        "status",
    },
    "lecture_attendance": {"id", "lecture_id", "student_id", "status"},
}

# Columns added to ``lectures`` after the first release, with the DDL for each.
LECTURE_COLUMN_PATCHES: dict[str, str] = {
    "module_id": "ALTER TABLE lectures ADD COLUMN module_id VARCHAR(36)",
    "schedule_id": "ALTER TABLE lectures ADD COLUMN schedule_id VARCHAR(36)",
    "delivery_mode": "ALTER TABLE lectures ADD COLUMN delivery_mode VARCHAR(8) NOT NULL DEFAULT 'physical'",
    "location": "ALTER TABLE lectures ADD COLUMN location VARCHAR(200)",
    "meeting_link": "ALTER TABLE lectures ADD COLUMN meeting_link VARCHAR(500)",
    "week_number": "ALTER TABLE lectures ADD COLUMN week_number INTEGER NOT NULL DEFAULT 1",
}


def _ensure_lecture_columns(engine: Engine) -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        if "lectures" not in set(inspector.get_table_names()):
            return
        column_names = {item["name"] for item in inspector.get_columns("lectures")}
        for column_name, statement in LECTURE_COLUMN_PATCHES.items():
            if column_name in column_names:
                continue
            logger.info("SCHEMA PATCH | table=lectures | column=%s", column_name)
            connection.execute(text(statement))


def _normalize_legacy_semester_labels(engine: Engine) -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        if "courses" not in set(inspector.get_table_names()):
            return
        if connection.dialect.name == "postgresql":
            # Enum-typed column; legacy labels cannot be stored there.
            return
        for legacy, period in LEGACY_PERIOD_LABELS.items():
            result = connection.execute(
                text("UPDATE courses SET semester_period = :period WHERE semester_period = :legacy"),
                {"period": period.value, "legacy": legacy},
            )
            if result.rowcount:
                logger.info("SEMESTER LABELS NORMALIZED | legacy=%s | period=%s | rows=%s", legacy, period.value, result.rowcount)


def _assert_required_columns(engine: Engine) -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        missing_tables = [name for name in REQUIRED_COLUMNS if name not in table_names]
        if missing_tables:
            raise RuntimeError(f"Missing required tables: {', '.join(sorted(missing_tables))}")

        missing_columns: list[str] = []
        for table_name, required in REQUIRED_COLUMNS.items():
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            for column_name in sorted(required - existing):
                missing_columns.append(f"{table_name}.{column_name}")
        if missing_columns:
            raise RuntimeError(f"Missing required columns: {', '.join(missing_columns)}")


def ensure_runtime_schema_compatibility(engine: Engine | None = None) -> None:
    engine = engine or default_engine
    try:
        # Create missing tables before the additive patches run.
        Base.metadata.create_all(bind=engine)
        _ensure_lecture_columns(engine)
        _normalize_legacy_semester_labels(engine)
        _assert_required_columns(engine)
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema compatibility bootstrap failed")
        raise RuntimeError("Runtime schema compatibility bootstrap failed") from exc
