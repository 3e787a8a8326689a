import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from app.assistant import assistant as assistant_client
from app.exceptions import AppError, StoreError
from app.routers import articles, assistant, users
from app.session_store import sessions
from app.config import settings

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logging.basicConfig(level=settings.LOG_LEVEL)
    try:
        await sessions.connect()
    except Exception as exc:
        # Sessions fall back to process memory without Redis.
        logger.warning("Session store unavailable: %s", exc)
    assistant_client.open()
    yield
    # Shutdown
    await assistant_client.close()
    await sessions.disconnect()

app = FastAPI(
    title="Articles & Assistant API",
    description="Users, articles with related resources, and a dialogue-service proxy",
    version="1.0.0",
    lifespan=lifespan,
)

# Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Error handlers
@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})

@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(
        "Database error on %s %s", request.method, request.url.path, exc_info=exc
    )
    error = StoreError()
    return JSONResponse(status_code=error.status_code, content={"detail": error.message})

# Routers
app.include_router(articles.router)
app.include_router(users.router)
app.include_router(assistant.router)

@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0"}
