import logging

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError as BodyValidationError
from fastapi.responses import JSONResponse

from nodeprobe.api.middleware import AuthMiddleware
from nodeprobe.api.routes import nodes, status
from nodeprobe.config import Config
from nodeprobe.errors import NodeNotFoundError, PersistenceError, PersistenceLookupError, RequestValidationError
from nodeprobe.logging import setup_logger

load_dotenv()
setup_logger("nodeprobe", getattr(logging, Config.LOG_LEVEL, logging.INFO))

app = FastAPI(title="nodeprobe")
app.add_middleware(AuthMiddleware)

app.include_router(status.router)

app.include_router(nodes.router)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return _error(400, exc.message)


@app.exception_handler(BodyValidationError)
async def body_validation_handler(request: Request, exc: BodyValidationError):
    return _error(400, "Invalid request body")


@app.exception_handler(PersistenceLookupError)
async def lookup_handler(request: Request, exc: PersistenceLookupError):
    # Node CRUD reports a missing record as 404; a failed lookup during a probe is a server error.
    if isinstance(exc, NodeNotFoundError) and request.url.path.startswith("/api/v1/servers"):
        return _error(404, exc.message)
    return _error(500, exc.message)


@app.exception_handler(PersistenceError)
async def persistence_handler(request: Request, exc: PersistenceError):
    return _error(500, str(exc))
