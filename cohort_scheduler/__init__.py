#cohort_scheduler/__init__.py
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .core.config import settings
from cohort_scheduler.core.database import init_db, close_db
from cohort_scheduler.core.errors import BaseAPIError, get_error_message
from cohort_scheduler.core.logging import logger
from cohort_scheduler.middleware.request_id import RequestIDMiddleware
from cohort_scheduler.routes import scheduler, session, teams


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        description="Provisions meetings, attaches recordings and manages reschedules for cohort sessions",
        version=settings.VERSION,
        docs_url="/api/docs" if settings.DEBUG else None,
        redoc_url="/api/redoc" if settings.DEBUG else None,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIDMiddleware)

    # Include routers
    app.include_router(scheduler.router)
    app.include_router(session.router)
    app.include_router(teams.router)

    @app.exception_handler(BaseAPIError)
    async def api_error_handler(request: Request, exc: BaseAPIError):
        return JSONResponse(status_code=exc.status_code, content=get_error_message(exc))

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error(f"Unhandled database error on {request.url.path}: {str(exc)}")
        return JSONResponse(status_code=500, content=get_error_message(exc))

    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "ok", "version": settings.VERSION}

    @app.on_event("startup")
    async def startup_event():
        await init_db()
        if not settings.CRON_SECRET:
            logger.warning("CRON_SECRET is not set; the batch trigger accepts unauthenticated calls")
        if settings.SCHEDULER_ENABLED:
            from cohort_scheduler.cron.daily import create_scheduler
            app.state.scheduler = create_scheduler()
            app.state.scheduler.start()
            logger.info(
                f"Daily batch scheduled at {settings.SCHEDULER_HOUR:02d}:{settings.SCHEDULER_MINUTE:02d} "
                f"{settings.REGION_TIMEZONE}"
            )
        logger.info("Application startup completed")

    @app.on_event("shutdown")
    async def shutdown_event():
        scheduler_instance = getattr(app.state, "scheduler", None)
        if scheduler_instance is not None:
            scheduler_instance.shutdown(wait=False)
        await close_db()
        logger.info("Application shutdown completed")

    return app
