"""
REST API Endpoints

Provides HTTP API for:
- Scheduling exact-time captures and listing/cancelling jobs
- Taking an immediate capture
- Listing, viewing, and downloading screenshots

Errors are returned as JSON {"error": "<message>"} with a 4xx/5xx status.
"""

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from exactshot.services.capture import ScreenshotCapture
from exactshot.services.job_registry import JobNotFoundError, JobRegistry, ScheduleValidationError
from exactshot.services.screenshot_store import ScreenshotStore
from exactshot.utils.timefmt import to_iso_z

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, private",
    "Pragma": "no-cache",
    "Expires": "0",
}


class ScheduleRequest(BaseModel):
    """Schedule request model."""

    model_config = ConfigDict(populate_by_name=True)

    datetime_value: str | None = Field(
        default=None,
        alias="datetime",
        description="ISO 8601 target instant, e.g. 2025-11-28T14:00:00+08:00",
    )
    recurring: bool = False


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def parse_schedule_request(body: bytes) -> ScheduleRequest:
    """Validate a raw schedule request body.

    Malformed bodies are reported like any other invalid schedule request
    (400 {"error"}), never as FastAPI's 422 {"detail"} list.

    Raises:
        ScheduleValidationError: If the body is not JSON or has wrong types
    """
    if not body.strip():
        return ScheduleRequest()

    try:
        return ScheduleRequest.model_validate_json(body)
    except ValidationError as e:
        first = e.errors()[0]
        if first["type"] == "json_invalid":
            raise ScheduleValidationError("Invalid JSON body") from e
        if first["loc"] and first["loc"][0] == "datetime":
            raise ScheduleValidationError("Invalid datetime format") from e
        if first["loc"]:
            raise ScheduleValidationError(f"Invalid {first['loc'][0]}") from e
        raise ScheduleValidationError("Request body must be a JSON object") from e


def install_http_middleware(app: FastAPI) -> None:
    """Add CORS and no-cache headers to every response."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def disable_caching(request: Request, call_next):
        response = await call_next(request)
        response.headers.update(NO_CACHE_HEADERS)
        return response


def create_api_router(
    registry: JobRegistry,
    capture: ScreenshotCapture,
    store: ScreenshotStore,
) -> APIRouter:
    """
    Create FastAPI router with all API endpoints.

    Args:
        registry: Job registry backing the schedule/jobs endpoints
        capture: Capture routine used for immediate captures
        store: Screenshot store for listing and serving files

    Returns:
        Configured APIRouter instance
    """
    router = APIRouter(prefix="/api")

    # -------------------------------------------------------------------------
    # Scheduling
    # -------------------------------------------------------------------------

    @router.post("/schedule")
    async def schedule_screenshot(request: Request):
        """
        Schedule an exact-time screenshot.

        Body: {"datetime": "2025-11-28T14:00:00+08:00", "recurring": false}

        Returns:
            Job id and resolved target instant
        """
        try:
            body = parse_schedule_request(await request.body())
            job = registry.schedule(body.datetime_value, recurring=body.recurring)
        except ScheduleValidationError as e:
            logger.warning(f"Schedule request rejected: {e}")
            return _error(400, str(e))
        except Exception as e:
            logger.error(f"Schedule error: {e}")
            return _error(500, str(e))

        local_time = job.target.astimezone().strftime("%Y-%m-%d %H:%M:%S %Z")
        return JSONResponse(
            content={
                "success": True,
                "jobId": job.id,
                "scheduledFor": to_iso_z(job.target),
                "message": f"Screenshot scheduled for {local_time}",
            }
        )

    @router.get("/jobs")
    async def list_jobs():
        """
        List all scheduled jobs.

        Returns:
            {"jobs": [{id, datetime, recurring, scheduled}]}
        """
        return JSONResponse(content={"jobs": registry.list_jobs()})

    @router.delete("/jobs/{job_id}")
    async def cancel_job(job_id: str):
        """
        Cancel a scheduled job.

        Raises:
            404 if the job does not exist
        """
        try:
            registry.cancel(job_id)
        except JobNotFoundError as e:
            return _error(404, str(e))

        return JSONResponse(content={"success": True, "message": "Job canceled successfully"})

    # -------------------------------------------------------------------------
    # Screenshots
    # -------------------------------------------------------------------------

    @router.get("/screenshots")
    async def list_screenshots():
        """
        List screenshots in the output directory, newest first.

        Returns:
            {"screenshots": [{filename, path, created, size}]}
        """
        try:
            screenshots = store.list_screenshots()
        except OSError as e:
            logger.error(f"Failed to list screenshots: {e}")
            return _error(500, str(e))

        return JSONResponse(
            content={
                "screenshots": [
                    {
                        "filename": s.filename,
                        "path": s.path,
                        "created": to_iso_z(s.created),
                        "size": s.size,
                    }
                    for s in screenshots
                ]
            }
        )

    @router.post("/screenshot/now")
    async def take_screenshot_now():
        """
        Take an immediate screenshot (no exact-time wait).

        Returns:
            {success, filepath, filename} or 500 {success: false, error}
        """
        result = await capture.capture()

        if not result.success:
            return JSONResponse(status_code=500, content={"success": False, "error": result.error})

        return JSONResponse(
            content={
                "success": True,
                "message": "Screenshot taken successfully",
                "filepath": result.filepath,
                "filename": result.filename,
            }
        )

    @router.get("/screenshot/{filename}")
    async def get_screenshot(filename: str):
        """Serve a screenshot image."""
        path = store.resolve(filename)
        if path is None:
            return _error(404, "Screenshot not found")

        return FileResponse(path, media_type="image/png")

    @router.get("/screenshot/{filename}/download")
    async def download_screenshot(filename: str):
        """Serve a screenshot image as an attachment."""
        path = store.resolve(filename)
        if path is None:
            return _error(404, "Screenshot not found")

        return FileResponse(
            path,
            media_type="image/png",
            filename=path.name,
            content_disposition_type="attachment",
        )

    return router
