from collections.abc import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from lectureplan.db.session import SessionLocal
from lectureplan.services.conflict_detector import ConflictDetector
from lectureplan.services.lecture_store import SqlAlchemyLectureStore


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_lecture_store(db: Session = Depends(get_db)) -> SqlAlchemyLectureStore:
    return SqlAlchemyLectureStore(db)


def get_conflict_detector(store: SqlAlchemyLectureStore = Depends(get_lecture_store)) -> ConflictDetector:
    return ConflictDetector(store)
