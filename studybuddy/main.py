from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from typing import Optional
import logging
from pathlib import Path

from studybuddy.config import Config
from studybuddy.constants import DEFAULT_LOG_DIRECTORY_DEV
from studybuddy.database import Database
from studybuddy.auto_migrate import auto_migrate
from studybuddy.scheduler import ReminderPoller
from studybuddy.services.gamification_service import validate_level_thresholds
from studybuddy.routes import users_router, streak_router, gamification_router, tasks_router
from studybuddy.exceptions import (
    StudyBuddyException,
    UserNotFoundException,
    TaskNotFoundException,
    InvalidDateFormatException,
    InvalidTimeFormatException,
    InvalidTimezoneException,
    ValidationException,
    ConcurrentUpdateException,
)

logger = logging.getLogger("studybuddy")


def configure_logging(config: Config) -> Path:
    """Log to a file and the console; falls back to ./logs without write access"""
    log_dir = config.log_dir
    try:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        log_path = Path(log_dir) / config.log_file
        log_path.touch(exist_ok=True)
    except PermissionError:
        log_dir = DEFAULT_LOG_DIRECTORY_DEV
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        log_path = Path(log_dir) / config.log_file

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_path),
            logging.StreamHandler()  # Also log to console
        ]
    )
    return log_path


NOT_FOUND_ERRORS = (UserNotFoundException, TaskNotFoundException)
INVALID_INPUT_ERRORS = (
    InvalidDateFormatException,
    InvalidTimeFormatException,
    InvalidTimezoneException,
    ValidationException,
)


async def studybuddy_exception_handler(request: Request, exc: StudyBuddyException):
    if isinstance(exc, NOT_FOUND_ERRORS):
        status_code = 404
    elif isinstance(exc, INVALID_INPUT_ERRORS):
        status_code = 400
    elif isinstance(exc, ConcurrentUpdateException):
        status_code = 409
    else:
        logger.error(f"Unhandled application error on {request.url.path}: {exc}")
        status_code = 500
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


def create_app(
    config: Optional[Config] = None,
    database: Optional[Database] = None,
    poller: Optional[ReminderPoller] = None
) -> FastAPI:
    """
    Build the API application.

    Args:
        config: Settings, read from the environment when omitted
        database: Database handle, built from config when omitted
        poller: Reminder poller, built from config when omitted

    Returns:
        FastAPI app; the database opens and the poller starts on startup
    """
    config = config or Config.from_env()
    database = database or Database(config.database_url)
    poller = poller or ReminderPoller(database, config)

    app = FastAPI(
        title="StudyBuddy API",
        description="Streaks, points and task reminders for the StudyBuddy app",
        version="1.0.0"
    )
    app.state.config = config
    app.state.database = database
    app.state.poller = poller

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(StudyBuddyException, studybuddy_exception_handler)

    @app.on_event("startup")
    async def startup_event():
        validate_level_thresholds()
        database.open()
        database.create_all()

        # Don't crash the app - continue with existing schema
        try:
            auto_migrate(database)
        except Exception as e:
            logger.error(f"Auto-migration failed: {e}")

        if config.scheduler_enabled:
            poller.start()
        logger.info("StudyBuddy API started")

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("Shutting down StudyBuddy API")
        poller.stop()
        database.close()

    # Health check (no auth required)
    @app.get("/")
    async def root():
        return {"message": "StudyBuddy API", "status": "active", "scheduler": poller.state}

    app.include_router(users_router)
    app.include_router(streak_router)
    app.include_router(gamification_router)
    app.include_router(tasks_router)

    return app


def main():
    import uvicorn

    config = Config.from_env()
    log_path = configure_logging(config)
    logger.info(f"Logging to: {log_path}")
    uvicorn.run(create_app(config), host="0.0.0.0", port=8000, reload=False)


if __name__ == "__main__":
    main()
