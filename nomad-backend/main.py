from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv
import logging
import os

from database import get_storage
from routers import advisor, budget, calendar, coworking, users
from seed import seed_demo_data

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

SEED_DEMO_DATA = os.getenv("SEED_DEMO_DATA", "true").strip().lower() in {"1", "true", "yes", "on"}

DEFAULT_CORS_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:3000",
    "http://127.0.0.1:5173",
    "http://127.0.0.1:3000",
]
CORS_ORIGINS = [
    origin.strip() for origin in os.getenv("CORS_ORIGINS", "").split(",") if origin.strip()
] or DEFAULT_CORS_ORIGINS


@asynccontextmanager
async def lifespan(app: FastAPI):
    storage = get_storage()
    if SEED_DEMO_DATA:
        seed_demo_data(storage)
    yield


app = FastAPI(
    title="Digital Nomad Planner API",
    version="1.0.0",
    description="Calendar, coworking, budget and travel planning for remote workers",
    lifespan=lifespan,
)

# Cannot use "*" with allow_credentials=True, so origins are listed explicitly
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    max_age=3600,
)


def _error_field(loc) -> str:
    # ("body", "title") -> "title"; ("path", "event_id") -> "event_id"
    parts = [str(part) for part in loc[1:]] if len(loc) > 1 else [str(part) for part in loc]
    return ".".join(parts)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": _error_field(err.get("loc", ())), "message": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
    logger.info(f"Rejected {request.method} {request.url.path}: {errors}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid data", "errors": errors},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# Include routers
app.include_router(users.router, prefix="/api", tags=["Users"])
app.include_router(calendar.router, prefix="/api/calendar", tags=["Calendar"])
app.include_router(coworking.router, prefix="/api/coworking", tags=["Coworking"])
app.include_router(budget.router, prefix="/api/budget", tags=["Budget"])
app.include_router(advisor.router, prefix="/api", tags=["Advisor"])


@app.get("/")
async def root():
    return {"message": "Digital Nomad Planner API", "version": "1.0.0", "docs": "/docs"}
