"""
QuizHub - FastAPI Application Entry Point.

This is the main application module that:
1. Initializes the FastAPI app with CORS middleware
2. Sets up structured JSON logging
3. Implements request ID middleware (X-Request-ID header)
4. Holds the in-memory registry of running test sessions
5. Registers all API route handlers and the health check

The application follows a modular architecture:
- routes/: API endpoint handlers
- models/: SQLAlchemy ORM models
- services/: Business logic (assembly, sessions, scoring, results)
- logging_config.py: Structured logging configuration
- database.py: Database connection management
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from quizhub.config import DATABASE_URL, TICK_SECONDS
from quizhub.logging_config import (
    setup_logging, get_logger, log_with_context,
    request_id_var, generate_request_id
)
from quizhub.routes import catalog, session, results, questions
from quizhub.database import create_tables
from quizhub.services.session_engine import SessionRegistry

# Import all models so they are registered with Base.metadata
from quizhub.models import Question, TestResult  # noqa: F401

# ──────────────────────────────────────────────────────────────
# Initialize structured logging BEFORE anything else
# ──────────────────────────────────────────────────────────────
setup_logging()
logger = get_logger("http")

# Auto-create tables for SQLite local development
if DATABASE_URL.startswith("sqlite"):
    logger.info("Using SQLite, creating tables directly")
    create_tables()


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Stop every session timer so no tick fires after shutdown
    app.state.sessions.shutdown()
    logger.info("Session registry shut down")


app = FastAPI(
    title="QuizHub",
    description=(
        "Timed multiple-choice tests for a learning platform: assembles tests "
        "from the question bank, runs quiz sessions with a countdown, scores "
        "submissions and keeps each user's results."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# One session per user, in memory; nothing is persisted mid-attempt
app.state.sessions = SessionRegistry(tick_seconds=TICK_SECONDS)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"]
)


# ──────────────────────────────────────────────────────────────
# Request ID Middleware
#
# Generates a unique UUID per incoming request, stores it in a
# context variable for every log entry, returns it in the
# X-Request-ID header and logs start/end with latency.
# ──────────────────────────────────────────────────────────────
@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    req_id = generate_request_id()
    request_id_var.set(req_id)

    start_time = time.time()

    log_with_context(logger, "INFO",
        f"Request started: {request.method} {request.url.path}",
        context={"request_id": req_id, "user_id": request.headers.get("x-user-id", "")},
        extra_data={
            "ip": request.client.host if request.client else "unknown",
            "user_agent": request.headers.get("user-agent", ""),
            "query_params": dict(request.query_params)
        })

    response = await call_next(request)

    duration_ms = (time.time() - start_time) * 1000
    response.headers["X-Request-ID"] = req_id

    log_with_context(logger, "INFO",
        f"Request completed: {request.method} {request.url.path} → {response.status_code}",
        context={"request_id": req_id},
        extra_data={
            "duration_ms": round(duration_ms, 2),
            "status_code": response.status_code
        })

    return response


# ──────────────────────────────────────────────────────────────
# Register API routes
# ──────────────────────────────────────────────────────────────
app.include_router(catalog.router, tags=["Tests"])
app.include_router(session.router, tags=["Session"])
app.include_router(results.router, tags=["Results"])
app.include_router(questions.router, tags=["Questions"])


@app.get("/health", tags=["Health"])
def health_check():
    """Health check endpoint for container health checks and monitoring."""
    return {"status": "healthy", "service": "quizhub-backend", "version": "1.0.0"}


@app.get("/", tags=["Root"])
def root():
    """Root endpoint with API information."""
    return {
        "service": "QuizHub",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "tests": "GET /api/tests",
            "start": "POST /api/session",
            "session": "GET /api/session",
            "answer": "POST /api/session/answer",
            "next": "POST /api/session/next",
            "previous": "POST /api/session/previous",
            "submit": "POST /api/session/submit",
            "review": "GET /api/session/review",
            "dismiss": "DELETE /api/session",
            "results": "GET /api/results",
            "summary": "GET /api/results/summary",
            "result_review": "GET /api/results/{id}/review",
            "questions": "GET|POST /api/questions",
            "admin_results": "GET /api/admin/results"
        }
    }
