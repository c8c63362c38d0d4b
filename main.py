"""Application entry point for the Nutrition Tracking API.

Defines FastAPI app, middleware, exception handlers and includes API
routers from the `api` package. The `lifespan` handler checks settings,
initializes the DB and starts the daily AI quota reset on startup.
"""

import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from core.config import check_settings, get_settings
from core.exceptions import DatabaseError
from core.logger import get_logger
from core.error_handlers import register_exception_handlers
from database import init_db, models
from database.deps import get_db_read
from tasks.quota_reset import run_quota_reset_loop
from api.auth import router as auth_router
from api.calendar import router as calendar_router
from api.meal_plans import router as meal_plans_router
from api.nutrition import router as nutrition_router
from api.questionnaire import router as questionnaire_router
from api.statistics import router as statistics_router
from api.user import router as user_router

logger = get_logger("main")
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Fastapi lifespan context: initialize resources before serving requests."""
    check_settings(settings)
    init_db()
    quota_task = None
    if settings.QUOTA_RESET_JOB_ENABLED:
        quota_task = asyncio.create_task(run_quota_reset_loop())
    yield
    if quota_task is not None:
        quota_task.cancel()
        try:
            await quota_task
        except asyncio.CancelledError:
            logger.info("Quota reset job stopped")


app = FastAPI(title="Nutrition Tracking API", version="1.0.0", lifespan=lifespan)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register exception handlers
register_exception_handlers(app)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log incoming requests and their responses."""
    logger.info("%s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
        logger.info("%s %s -> %s", request.method, request.url.path, response.status_code)
        return response
    except Exception:
        logger.exception("Request error: %s %s", request.method, request.url.path)
        raise


@app.get("/health")
def health(db: Session = Depends(get_db_read)):
    """Return basic health status and database connectivity.

    Raises:
        DatabaseError: If database connection fails.
    """
    try:
        _ = db.query(models.User.id).first()
        return {"status": "healthy", "database": "connected", "ai_enabled": settings.ai_enabled}
    except Exception as e:
        logger.exception("Health check failed")
        raise DatabaseError("Database health check failed", operation=type(e).__name__)


# include routers
app.include_router(auth_router)
app.include_router(user_router)
app.include_router(questionnaire_router)
app.include_router(meal_plans_router)
app.include_router(nutrition_router)
app.include_router(calendar_router)
app.include_router(statistics_router)


if __name__ == "__main__":
    # Allow starting the app via `python ./main.py`
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
