from fastapi import FastAPI, HTTPException, Depends
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from dotenv import load_dotenv
from sqlalchemy import text
from sqlmodel import Session
import logging

# Load environment variables as early as possible
load_dotenv()

from .config import settings
from .database import create_db_and_tables, get_session
from .exceptions import http_exception_handler
from .middleware import LoggingMiddleware, ErrorHandlingMiddleware
from .routers import appointments_router, slots_router, queue_router, exams_router
from .schemas.common.common import HealthResponse

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format=settings.LOG_FORMAT
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting Clinic Scheduling API...")
    app.state.db_init_ok = True
    app.state.db_init_error = None
    try:
        create_db_and_tables()
        logger.info("Database initialized successfully")
    except Exception as e:
        # Do not crash the app; report via health endpoint
        app.state.db_init_ok = False
        app.state.db_init_error = str(e)
        logger.exception("Database initialization failed")
    yield
    # Shutdown
    logger.info("Shutting down Clinic Scheduling API...")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    docs_url=("/docs" if settings.DOCS_ENABLED else None),
    redoc_url=("/redoc" if settings.DOCS_ENABLED else None),
    openapi_url=("/openapi.json" if settings.DOCS_ENABLED else None)
)

# Domain errors are HTTPException subclasses and share the same envelope
app.add_exception_handler(HTTPException, http_exception_handler)

app.add_middleware(ErrorHandlingMiddleware)
app.add_middleware(LoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(appointments_router.router)
app.include_router(slots_router.router)
app.include_router(queue_router.router)
app.include_router(exams_router.router)


if settings.HEALTH_CHECK_ENABLED:
    @app.get("/health", response_model=HealthResponse)
    def health(session: Session = Depends(get_session)):
        database_ok = True
        try:
            session.execute(text("SELECT 1"))
        except Exception as e:
            logger.error(f"Health check database error: {e}")
            database_ok = False
        return HealthResponse(
            status="ok" if database_ok else "degraded",
            app=settings.APP_NAME,
            version=settings.APP_VERSION,
            database=database_ok,
        )
