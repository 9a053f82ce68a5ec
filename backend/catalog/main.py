"""FastAPI application entrypoint and HTTP controllers.

This module defines the HTTP endpoints of the catalog backend.
Controllers are intentionally thin: they validate requests, delegate to
repositories and return JSON responses.

Endpoints implemented:
- GET /
- GET /health
- GET, POST /departments
- GET, PATCH, DELETE /departments/{slug}
- GET, POST /departments/{slug}/courses
- GET, PATCH, DELETE /departments/{slug}/courses/{course_id}
"""

import json
import logging
import os
import time
import uuid
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import models, repositories
from .config import Settings, get_settings
from .database import Database
from .errors import InvalidInputError, StorageError
from .schemas import CourseIn, CoursePatch, DepartmentIn, DepartmentPatch
from .utils.slugify import slugify

logger = logging.getLogger("catalog.api")

# Columns that may not be cleared with an explicit null
_DEPARTMENT_NOT_NULL = {"title", "description"}
_COURSE_NOT_NULL = {"course_id", "title", "semester"}

router = APIRouter()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application.

    Settings are resolved at startup when not given, so a missing
    `DATABASE_URL` aborts startup rather than import.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cfg = settings or get_settings()
        logging.basicConfig(level=cfg.LOG_LEVEL)
        db = Database.from_settings(cfg)
        app.state.settings = cfg
        app.state.db = db
        try:
            yield
        finally:
            await db.dispose()

    app = FastAPI(title="Course Catalog API", lifespan=lifespan)

    # Wide-open CORS keeps local HTML testers working without extra config in dev.
    if settings is not None:
        allow_cors = settings.ALLOW_DEV_CORS
    else:
        allow_cors = os.getenv("ALLOW_DEV_CORS", "true").lower() == "true"
    if allow_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=False,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.middleware("http")(request_context_middleware)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(InvalidInputError, invalid_input_handler)
    app.add_exception_handler(StorageError, storage_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
    app.include_router(router)
    return app


async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    response: Response
    try:
        response = await call_next(request)
    except Exception:
        elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
        logger.exception(
            "request_failed %s",
            json.dumps(
                {
                    "request_id": req_id,
                    "path": request.url.path,
                    "method": request.method,
                    "duration_ms": elapsed_ms,
                },
                ensure_ascii=True,
            ),
        )
        raise
    response.headers["X-Request-ID"] = req_id
    elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
    logger.info(
        "request_done %s",
        json.dumps(
            {
                "request_id": req_id,
                "path": request.url.path,
                "method": request.method,
                "status_code": response.status_code,
                "duration_ms": elapsed_ms,
            },
            ensure_ascii=True,
        ),
    )
    return response


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=getattr(exc, "headers", None))


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [{"loc": list(e.get("loc", [])), "msg": e.get("msg", "")} for e in exc.errors()]
    return JSONResponse(status_code=400, content={"error": "invalid input", "errors": errors})


async def invalid_input_handler(request: Request, exc: InvalidInputError):
    return JSONResponse(status_code=400, content={"error": str(exc)})


async def storage_error_handler(request: Request, exc: StorageError):
    logger.error("storage error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def get_database(request: Request) -> Database:
    return request.app.state.db


def get_department_repo(db: Database = Depends(get_database)) -> repositories.DepartmentRepository:
    return repositories.DepartmentRepository(db)


def get_course_repo(db: Database = Depends(get_database)) -> repositories.CourseRepository:
    return repositories.CourseRepository(db)


async def _department_or_404(slug: str, repo: repositories.DepartmentRepository) -> models.Department:
    department = await repo.get_by_slug(slug)
    if not department:
        raise HTTPException(status_code=404, detail="department not found")
    return department


def _changes(patch, not_null: set) -> dict:
    """Sparse changes from a PATCH body; rejects empty bodies and nulls on required columns."""
    changes = patch.model_dump(exclude_unset=True)
    if not changes:
        raise InvalidInputError("nothing to update")
    cleared = sorted(k for k, v in changes.items() if v is None and k in not_null)
    if cleared:
        raise InvalidInputError(f"fields cannot be null: {', '.join(cleared)}")
    return changes


@router.get("/")
def index():
    """List the available resources and their methods."""
    return [
        {"href": "/departments", "methods": ["GET", "POST"]},
        {"href": "/departments/{slug}", "methods": ["GET", "PATCH", "DELETE"]},
        {"href": "/departments/{slug}/courses", "methods": ["GET", "POST"]},
        {"href": "/departments/{slug}/courses/{course_id}", "methods": ["GET", "PATCH", "DELETE"]},
    ]


@router.get("/health")
def health():
    """Lightweight health check for uptime monitoring."""
    return {"status": "ok"}


@router.get("/departments", response_model=List[models.Department])
async def list_departments(repo: repositories.DepartmentRepository = Depends(get_department_repo)):
    return await repo.list()


@router.post("/departments", response_model=models.Department, status_code=201)
async def create_department(payload: DepartmentIn, repo: repositories.DepartmentRepository = Depends(get_department_repo)):
    """Create a department; its slug is derived from the title."""
    slug = slugify(payload.title)
    if not slug:
        raise InvalidInputError("title must contain letters or digits")
    if await repo.get_by_slug(slug):
        raise InvalidInputError(f"department already exists: {slug}")
    department = await repo.create(payload.title, slug, payload.description)
    if not department:
        raise StorageError("department insert returned no row")
    return department


@router.get("/departments/{slug}", response_model=models.Department)
async def get_department(slug: str, repo: repositories.DepartmentRepository = Depends(get_department_repo)):
    return await _department_or_404(slug, repo)


@router.patch("/departments/{slug}", response_model=models.Department)
async def update_department(
    slug: str,
    payload: DepartmentPatch,
    repo: repositories.DepartmentRepository = Depends(get_department_repo),
):
    """Update title and/or description. The slug is kept as assigned."""
    department = await _department_or_404(slug, repo)
    updated = await repo.update(department.id, _changes(payload, _DEPARTMENT_NOT_NULL))
    if not updated:
        raise HTTPException(status_code=404, detail="department not found")
    return updated


@router.delete("/departments/{slug}", status_code=204)
async def delete_department(slug: str, repo: repositories.DepartmentRepository = Depends(get_department_repo)):
    """Delete a department and, through the schema, its courses."""
    if not await repo.delete_by_slug(slug):
        raise HTTPException(status_code=404, detail="department not found")
    return Response(status_code=204)


@router.get("/departments/{slug}/courses", response_model=List[models.Course])
async def list_courses(
    slug: str,
    departments: repositories.DepartmentRepository = Depends(get_department_repo),
    courses: repositories.CourseRepository = Depends(get_course_repo),
):
    department = await _department_or_404(slug, departments)
    return await courses.list_for_department(department.id)


@router.post("/departments/{slug}/courses", response_model=models.Course, status_code=201)
async def create_course(
    slug: str,
    payload: CourseIn,
    departments: repositories.DepartmentRepository = Depends(get_department_repo),
    courses: repositories.CourseRepository = Depends(get_course_repo),
):
    department = await _department_or_404(slug, departments)
    if await courses.get_by_course_id(department.id, payload.course_id):
        raise InvalidInputError(f"course already exists: {payload.course_id}")
    course = await courses.create(
        department.id,
        payload.course_id,
        payload.title,
        payload.semester,
        units=payload.units,
        level=payload.level,
        url=payload.url,
    )
    if not course:
        raise StorageError("course insert returned no row")
    return course


async def _course_or_404(department: models.Department, course_id: str, repo: repositories.CourseRepository) -> models.Course:
    course = await repo.get_by_course_id(department.id, course_id)
    if not course:
        raise HTTPException(status_code=404, detail="course not found")
    return course


@router.get("/departments/{slug}/courses/{course_id}", response_model=models.Course)
async def get_course(
    slug: str,
    course_id: str,
    departments: repositories.DepartmentRepository = Depends(get_department_repo),
    courses: repositories.CourseRepository = Depends(get_course_repo),
):
    department = await _department_or_404(slug, departments)
    return await _course_or_404(department, course_id, courses)


@router.patch("/departments/{slug}/courses/{course_id}", response_model=models.Course)
async def update_course(
    slug: str,
    course_id: str,
    payload: CoursePatch,
    departments: repositories.DepartmentRepository = Depends(get_department_repo),
    courses: repositories.CourseRepository = Depends(get_course_repo),
):
    department = await _department_or_404(slug, departments)
    course = await _course_or_404(department, course_id, courses)
    changes = _changes(payload, _COURSE_NOT_NULL)
    new_code = changes.get("course_id")
    if new_code and new_code != course.course_id and await courses.get_by_course_id(department.id, new_code):
        raise InvalidInputError(f"course already exists: {new_code}")
    updated = await courses.update(course.id, changes)
    if not updated:
        raise HTTPException(status_code=404, detail="course not found")
    return updated


@router.delete("/departments/{slug}/courses/{course_id}", status_code=204)
async def delete_course(
    slug: str,
    course_id: str,
    departments: repositories.DepartmentRepository = Depends(get_department_repo),
    courses: repositories.CourseRepository = Depends(get_course_repo),
):
    department = await _department_or_404(slug, departments)
    course = await _course_or_404(department, course_id, courses)
    if not await courses.delete(course.id):
        raise HTTPException(status_code=404, detail="course not found")
    return Response(status_code=204)


app = create_app()
