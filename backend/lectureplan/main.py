from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from lectureplan.api.routes import conflicts, course_schedules, health, lectures, schedules, timetable
from lectureplan.core.config import get_settings
from lectureplan.core.exceptions import AppError
from lectureplan.core.logging import configure_logging
from lectureplan.core.middleware import RequestSizeLimitMiddleware, RequestTimingMiddleware
from lectureplan.db.bootstrap import ensure_runtime_schema_compatibility

settings = get_settings()


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging(settings.log_level)
    ensure_runtime_schema_compatibility()
    yield


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "details": exc.details},
    )


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)

app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_size_bytes)
app.add_middleware(RequestTimingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(conflicts.router, prefix=f"{settings.api_prefix}/conflicts", tags=["conflicts"])
app.include_router(schedules.router, prefix=f"{settings.api_prefix}/courses", tags=["auto-schedule"])
app.include_router(course_schedules.router, prefix=f"{settings.api_prefix}/courses", tags=["course-schedules"])
app.include_router(lectures.router, prefix=settings.api_prefix, tags=["lectures"])
app.include_router(timetable.router, prefix=f"{settings.api_prefix}/timetable", tags=["timetable"])
