"""
HTTP API Module.

FastAPI application exposing the ingestion façade:

    GET  /health             liveness
    POST /documents          multipart upload; 200 with the result (immediate)
                             or 202 with {"jobId"} (queued)
    GET  /jobs/{job_id}      job snapshot; ?wait=<seconds> waits first

Run with any ASGI server, e.g.:
    uvicorn docintake.api.app:create_default_app --factory
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from config import get_config
from docintake.service import IngestionFacade
from docintake.utils.exceptions import (
    ExtractionError,
    InputError,
    JobFailedError,
    JobNotFoundError,
    JobTimeoutError,
    UnsupportedMediaTypeError,
)
from docintake.utils.helpers import get_file_extension
from docintake.utils.logger import get_logger

logger = get_logger(__name__)


def _media_type_of(upload: UploadFile) -> str:
    content_type = (upload.content_type or "").split(";")[0].strip().lower()
    if content_type and content_type != "application/octet-stream":
        return content_type
    return get_file_extension(upload.filename or "")


def create_app(*, facade: IngestionFacade, max_wait_seconds: Optional[float] = None) -> FastAPI:
    """
    Build the API around a façade.

    Args:
        facade: Façade (and job manager) serving the requests.
        max_wait_seconds: Upper bound for the ?wait= parameter.
    """
    if max_wait_seconds is None:
        max_wait_seconds = float(get_config("api.max_wait_seconds", 60))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        facade.start()
        yield
        facade.shutdown()

    app = FastAPI(title="Document Intake API", lifespan=lifespan)

    @app.get("/health")
    async def health_check():
        return {"status": "ok"}

    @app.post("/documents")
    async def submit_document(
        file: UploadFile = File(...),
        document_class: Optional[str] = Form(None),
        mode: str = Form("queued"),
    ):
        data = await file.read()
        media_type = _media_type_of(file)

        try:
            reply = await run_in_threadpool(
                facade.submit, data, media_type, document_class, mode, file.filename
            )
        except UnsupportedMediaTypeError as e:
            raise HTTPException(status_code=415, detail=e.message) from e
        except InputError as e:
            raise HTTPException(status_code=400, detail=e.message) from e
        except ExtractionError as e:
            logger.warning(f"Immediate extraction of {file.filename} failed: {e}")
            raise HTTPException(status_code=422, detail=e.message) from e

        if "jobId" in reply:
            return JSONResponse(status_code=202, content={"jobId": reply["jobId"]})
        return reply["result"]

    @app.get("/jobs/{job_id}")
    async def job_status(job_id: str, wait: float = Query(0.0, ge=0.0)):
        try:
            if wait > 0:
                await run_in_threadpool(facade.wait, job_id, min(wait, max_wait_seconds))
            return facade.poll(job_id)
        except JobNotFoundError as e:
            raise HTTPException(status_code=404, detail=e.message) from e
        except JobTimeoutError:
            return JSONResponse(status_code=202, content=facade.poll(job_id))
        except JobFailedError:
            return facade.poll(job_id)

    return app


def create_default_app() -> FastAPI:
    """Application wired from configuration, for ASGI servers."""
    from docintake.utils.logger import setup_logger_from_config

    setup_logger_from_config()
    return create_app(facade=IngestionFacade())
