import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from portal.database.immutability import register_immutability_listeners
from portal.exceptions import (
    DuplicateSubmission,
    InvalidStage,
    NotFound,
    PersistenceFailure,
    PortalError,
    Unauthorized,
    ValidationFailed,
)
from portal.routers import api_router
from portal.settings import CORS_ORIGINS
from portal.utils.log_config import configure_logging

configure_logging()
register_immutability_listeners()

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    ValidationFailed: status.HTTP_400_BAD_REQUEST,
    DuplicateSubmission: status.HTTP_409_CONFLICT,
    Unauthorized: status.HTTP_403_FORBIDDEN,
    InvalidStage: status.HTTP_409_CONFLICT,
    NotFound: status.HTTP_404_NOT_FOUND,
    PersistenceFailure: status.HTTP_503_SERVICE_UNAVAILABLE,
}

app = FastAPI(title="Student Registration Portal")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-App-Error-Code"],  # Expose custom headers
)


@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError):
    status_code = ERROR_STATUS_CODES.get(type(exc), status.HTTP_400_BAD_REQUEST)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.code, exc.message)

    headers = {"X-App-Error-Code": exc.code}
    if exc.retryable:
        headers["Retry-After"] = "1"
    return JSONResponse(status_code=status_code, content=exc.to_dict(), headers=headers)


# Include the API router
app.include_router(api_router)
