"""
API server for the label compliance session and comparison engine.

Provides JSON REST APIs for storing analyses, resolving ambiguous product
categories, tracking follow-up sessions and comparing label revisions.
"""
import uvicorn
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.responses import JSONResponse
from starlette.routing import Route

from labelcheck.compliance.routes import routes as compliance_routes
from labelcheck.config import get
from labelcheck.logging_config import configure_logging, get_logger
from labelcheck.middleware import CorrelationIdMiddleware, ErrorBoundaryMiddleware
from labelcheck.models.database import get_db_path, init_db

# Initialize centralized logging
LOG_LEVEL = get("app", "log_level").upper()
configure_logging(
    log_level=LOG_LEVEL,
    service=get("app", "service_name"),
    log_to_file=get("logging", "log_to_file"),
    retention_hours=get("logging", "retention_hours"),
)
logger = get_logger("app")


async def health(request):
    return JSONResponse({"status": "ok"})


def create_app(db_path: str | None = None) -> Starlette:
    """Build the ASGI app and make sure the database schema exists."""
    db_path = db_path or get_db_path()
    init_db(db_path)

    routes = [
        Route("/health", health),
        *compliance_routes,
    ]

    middleware = [
        Middleware(CorrelationIdMiddleware),
        Middleware(ErrorBoundaryMiddleware),
    ]

    app = Starlette(debug=False, routes=routes, middleware=middleware)
    app.state.db_path = db_path
    logger.info(f"Application ready with database: {db_path}")
    return app


if __name__ == "__main__":
    HOT_RELOAD = get("app", "hot_reload")
    logger.info(f"Starting app with hot reload: {HOT_RELOAD}")
    uvicorn.run(
        "main:create_app",
        factory=True,
        host=get("app", "host"),
        port=get("app", "port"),
        reload=HOT_RELOAD,
    )
