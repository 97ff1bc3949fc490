import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from walkplanner.api.routes import absences, assignments, billing, dog_routines, planning, rallies, slots
from walkplanner.core.config import settings
from walkplanner.services.planning.errors import NotFoundError, StoreUnavailableError

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="WalkPlanner API", version="0.1.0")

app.include_router(slots.router, prefix="/api/v1")
app.include_router(planning.router, prefix="/api/v1")
app.include_router(assignments.router, prefix="/api/v1")
app.include_router(dog_routines.router, prefix="/api/v1")
app.include_router(rallies.router, prefix="/api/v1")
app.include_router(billing.router, prefix="/api/v1")
app.include_router(absences.router, prefix="/api/v1")


@app.exception_handler(StoreUnavailableError)
def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": str(exc), "retryable": True},
    )


@app.exception_handler(NotFoundError)
def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(ValueError)
def invalid_input_handler(request: Request, exc: ValueError):
    # malformed slot ids and weeks that do not exist in the year
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"detail": str(exc)})


@app.get("/health")
def health_check():
    return {"status": "ok"}
