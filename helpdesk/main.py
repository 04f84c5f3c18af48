"""
Helpdesk Intelligence - FastAPI Backend
"""
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from helpdesk import __version__
from helpdesk.config import get_settings
from helpdesk.middleware.logging_middleware import LoggingMiddleware
from helpdesk.routes import ai, health, tickets
from helpdesk.utils.errors import InvalidArgumentError, NotFoundError, PersistenceError
from helpdesk.utils.logger import get_logger

settings = get_settings()
logger = get_logger(__name__)

app = FastAPI(
    title="Helpdesk Intelligence",
    description="Ticket intake with AI-assisted triage, assignment and escalation",
    version=__version__
)

# Middleware runs bottom-up: logging first, then CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(LoggingMiddleware)

app.include_router(tickets.router)
app.include_router(ai.router)
app.include_router(health.router)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(InvalidArgumentError)
async def invalid_argument_handler(request: Request, exc: InvalidArgumentError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    logger.error(f"Data store failure on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Data store unavailable, please retry"}
    )


@app.get("/")
async def root():
    return {"message": "Helpdesk Intelligence API", "version": __version__}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.fastapi_host, port=settings.fastapi_port)
