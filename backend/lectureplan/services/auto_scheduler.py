"""Full-term lecture timetable generation for a course.

``propose`` walks the course modules in sequence order, one lecture per
teaching week, and places each week in the first open catalog slot: the
caller's preferred days and times first, then the rest of the catalog. Weeks
that cannot be placed are reported and the run carries on. ``confirm`` writes
a reviewed proposal in a single transaction.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from time import perf_counter

from sqlalchemy import select
from sqlalchemy.orm import Session

from lectureplan.core.exceptions import ResourceNotFoundError, SchedulerError
from lectureplan.models.course import Course
from lectureplan.models.course_module import CourseModule
from lectureplan.models.lecture import DeliveryMode, Lecture, LectureStatus
from lectureplan.schemas.schedule import (
    CapacityModule,
    CapacityReport,
    PlacementConflicts,
    ProposedLecture,
    SchedulePreferences,
    ScheduleProposal,
    ScheduleSummary,
    UnresolvedWeek,
)
from lectureplan.services.calendar import TEACHING_WEEKS, date_for_week, is_teaching_week, semester_start
from lectureplan.services.conflict_detector import ConflictDetector, LecturePlacement
from lectureplan.services.lecture_store import LectureRecord, LectureStore, lock_lecture_dates
from lectureplan.services.slot_catalog import TimeSlot, candidate_pairs, weekday_index

logger = logging.getLogger(__name__)

EXCEEDS_TEACHING_PERIOD = f"Exceeds {TEACHING_WEEKS}-week teaching period"
NO_AVAILABLE_SLOTS = "No available time slots"


@dataclass
class ConfirmResult:
    lectures: list[Lecture] = field(default_factory=list)
    conflicts: list[PlacementConflicts] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.conflicts


def capacity_report(modules: Sequence[CourseModule]) -> CapacityReport | None:
    total = sum(module.duration_weeks for module in modules)
    if total <= TEACHING_WEEKS:
        return None
    return CapacityReport(
        total_weeks_needed=total,
        max_weeks=TEACHING_WEEKS,
        overshoot=total - TEACHING_WEEKS,
        modules=[
            CapacityModule(title=module.title, sequence=module.sequence, duration_weeks=module.duration_weeks)
            for module in modules
        ],
    )


class AutoScheduler:
    def __init__(self, store: LectureStore, detector: ConflictDetector | None = None) -> None:
        self.store = store
        self.detector = detector or ConflictDetector(store)

    def propose(
        self,
        course: Course,
        modules: Sequence[CourseModule],
        faculty_id: str,
        preferences: SchedulePreferences,
    ) -> ScheduleProposal:
        ordered = sorted(modules, key=lambda module: module.sequence)
        if not ordered:
            raise SchedulerError("No modules found for this course", details={"course_id": course.id})

        total_weeks = sum(module.duration_weeks for module in ordered)
        capacity = capacity_report(ordered)
        if capacity is not None:
            logger.warning(
                "AUTO SCHEDULE CAPACITY EXCEEDED | course_id=%s | total_weeks=%s | max_weeks=%s",
                course.id,
                total_weeks,
                TEACHING_WEEKS,
            )
            return ScheduleProposal(
                capacity=capacity,
                summary=ScheduleSummary(
                    total_modules=len(ordered),
                    total_weeks=total_weeks,
                    lectures_scheduled=0,
                    conflicts=0,
                ),
            )

        started = perf_counter()
        start = semester_start(course.year, course.semester_period)
        placements: list[ProposedLecture] = []
        unresolved: list[UnresolvedWeek] = []
        pending: list[LectureRecord] = []
        fallback_weeks = 0
        current_week = 1

        for module in ordered:
            for offset in range(module.duration_weeks):
                week = current_week + offset
                if week > TEACHING_WEEKS:
                    unresolved.append(
                        UnresolvedWeek(
                            module_id=module.id,
                            module_title=module.title,
                            week=week,
                            error=EXCEEDS_TEACHING_PERIOD,
                        )
                    )
                    break

                found = self._first_open_slot(course, faculty_id, preferences, start, week, pending)
                if found is None:
                    unresolved.append(
                        UnresolvedWeek(
                            module_id=module.id,
                            module_title=module.title,
                            week=week,
                            error=NO_AVAILABLE_SLOTS,
                        )
                    )
                    continue

                placement, day, slot, preferred = found
                if not preferred:
                    fallback_weeks += 1
                topic = f"{module.title} - Week {offset + 1}"
                pending.append(placement.as_record(course=course, topic=topic))
                placements.append(
                    ProposedLecture(
                        module_id=module.id,
                        module_title=module.title,
                        module_sequence=module.sequence,
                        week_number=week,
                        lecture_date=placement.lecture_date,
                        day_of_week=day,
                        start_time=slot.start,
                        end_time=slot.end,
                        time_slot=slot.label,
                        delivery_mode=preferences.delivery_mode,
                        location=preferences.location,
                        meeting_link=preferences.meeting_link,
                        topic=topic,
                    )
                )
            current_week += module.duration_weeks

        logger.info(
            "AUTO SCHEDULE PROPOSAL | course_id=%s | faculty_id=%s | modules=%s | placed=%s | fallback=%s | unresolved=%s | runtime_ms=%s",
            course.id,
            faculty_id,
            len(ordered),
            len(placements),
            fallback_weeks,
            len(unresolved),
            int((perf_counter() - started) * 1000),
        )
        return ScheduleProposal(
            placements=placements,
            unresolved=unresolved,
            summary=ScheduleSummary(
                total_modules=len(ordered),
                total_weeks=total_weeks,
                lectures_scheduled=len(placements),
                conflicts=len(unresolved),
            ),
        )

    def _first_open_slot(
        self,
        course: Course,
        faculty_id: str,
        preferences: SchedulePreferences,
        start: date,
        week: int,
        pending: list[LectureRecord],
    ) -> tuple[LecturePlacement, str, TimeSlot, bool] | None:
        for day, slot, preferred in candidate_pairs(preferences.preferred_days, preferences.preferred_times):
            placement = LecturePlacement(
                lecture_date=date_for_week(start, week, weekday_index(day)),
                start_time=slot.start,
                end_time=slot.end,
                faculty_id=faculty_id,
                course_id=course.id,
                location=preferences.location,
                delivery_mode=preferences.delivery_mode,
            )
            if self.detector.is_available(placement, pending=pending):
                return placement, day, slot, preferred
        return None

    def confirm(
        self,
        db: Session,
        course: Course,
        faculty_id: str,
        placements: Sequence[ProposedLecture],
    ) -> ConfirmResult:
        """Create one lecture per placement, all or nothing.

        Every placement is re-checked against stored lectures and against the
        placements before it in the same batch; any blocking conflict aborts
        the batch without writing.
        """
        module_ids = set(db.scalars(select(CourseModule.id).where(CourseModule.course_id == course.id)))
        for item in placements:
            if item.module_id is not None and item.module_id not in module_ids:
                raise ResourceNotFoundError("Module", item.module_id)

        weeks: list[int] = []
        outside = []
        for index, item in enumerate(placements):
            week = self.detector.week_of(course.id, item.lecture_date)
            weeks.append(week)
            if not is_teaching_week(week):
                outside.append({"index": index, "lecture_date": item.lecture_date.isoformat(), "week_number": week})
        if outside:
            raise SchedulerError(
                f"Lectures must fall within teaching weeks 1-{TEACHING_WEEKS}",
                details={"placements": outside},
            )

        lock_lecture_dates(db, [item.lecture_date for item in placements])
        result = ConfirmResult()
        pending: list[LectureRecord] = []
        for index, item in enumerate(placements):
            placement = LecturePlacement(
                lecture_date=item.lecture_date,
                start_time=item.start_time,
                end_time=item.end_time,
                faculty_id=faculty_id,
                course_id=course.id,
                location=item.location,
                delivery_mode=item.delivery_mode,
            )
            conflicts = self.detector.blocking(placement, pending=pending)
            if conflicts:
                result.conflicts.append(
                    PlacementConflicts(
                        index=index,
                        lecture_date=item.lecture_date,
                        start_time=item.start_time,
                        end_time=item.end_time,
                        conflicts=conflicts,
                    )
                )
            pending.append(placement.as_record(course=course, topic=item.topic))

        if result.conflicts:
            logger.warning(
                "AUTO SCHEDULE CONFIRM REJECTED | course_id=%s | faculty_id=%s | placements=%s | conflicting=%s",
                course.id,
                faculty_id,
                len(placements),
                len(result.conflicts),
            )
            return result

        lectures = [
            Lecture(
                course_id=course.id,
                module_id=item.module_id,
                lecture_date=item.lecture_date,
                start_time=item.start_time,
                end_time=item.end_time,
                delivery_mode=item.delivery_mode,
                location=item.location if item.delivery_mode == DeliveryMode.physical else None,
                meeting_link=item.meeting_link if item.delivery_mode == DeliveryMode.online else None,
                topic=item.topic,
                conducted_by=faculty_id,
                week_number=week,
                status=LectureStatus.scheduled,
            )
            for item, week in zip(placements, weeks)
        ]
        try:
            db.add_all(lectures)
            db.commit()
        except Exception:
            db.rollback()
            logger.exception(
                "AUTO SCHEDULE CONFIRM FAILED | course_id=%s | faculty_id=%s | placements=%s",
                course.id,
                faculty_id,
                len(placements),
            )
            raise
        for lecture in lectures:
            db.refresh(lecture)

        logger.info(
            "AUTO SCHEDULE CONFIRMED | course_id=%s | faculty_id=%s | lectures_created=%s",
            course.id,
            faculty_id,
            len(lectures),
        )
        result.lectures = lectures
        return result
