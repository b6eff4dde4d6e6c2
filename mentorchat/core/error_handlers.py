from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
import logging

from .exceptions import MentorChatException, ValidationError

logger = logging.getLogger(__name__)

async def mentorchat_exception_handler(request: Request, exc: MentorChatException):
    """Handle custom MentorChat exceptions"""
    logger.warning(f"{exc.__class__.__name__}: {exc.message} - Path: {request.url.path}")
    content = {"error": exc.message, "type": exc.__class__.__name__}
    if isinstance(exc, ValidationError) and exc.field:
        content["field"] = exc.field
    return JSONResponse(status_code=exc.status_code, content=content)

async def storage_unavailable_handler(request: Request, exc: OperationalError):
    """Storage outages are reported as retryable"""
    logger.error(f"Storage unavailable: {exc} - Path: {request.url.path}")
    return JSONResponse(
        status_code=503,
        content={"error": "Service temporarily unavailable", "type": "TransientIOError"}
    )

def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(MentorChatException, mentorchat_exception_handler)
    app.add_exception_handler(OperationalError, storage_unavailable_handler)
