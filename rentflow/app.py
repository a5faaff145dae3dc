import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rentflow.core.logs import get_logger
from rentflow.core.transitions import verify_transition_table
from rentflow.infrastructure import BrowserlessClient, configure_automation_backend
from rentflow.routes import contracts, providers, scraping

logger = get_logger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title="Rentflow API", version="0.1.0")

    # refuse to start on a table that maps one request to two statuses
    verify_transition_table()

    api_key = os.getenv("BROWSERLESS_API_KEY")
    if api_key:
        api_base = os.getenv("BROWSERLESS_API_URL") or "https://chrome.browserless.io"
        configure_automation_backend(BrowserlessClient(api_key, api_base=api_base))
        logger.info("browserless automation backend configured at %s", api_base)
    else:
        logger.warning("BROWSERLESS_API_KEY not set; scrape jobs will fail until a backend is configured")

    origins_env = os.getenv("API_CORS_ORIGINS", "")
    origins = [origin.strip() for origin in origins_env.split(",") if origin.strip()]
    if not origins:
        origins = ["http://localhost:3000", "http://127.0.0.1:3000"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(contracts.router, prefix="/api")
    app.include_router(providers.router, prefix="/api")
    app.include_router(scraping.router, prefix="/api")

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Provide a lightweight landing page for container checks."""
        return JSONResponse(
            {
                "message": "Rentflow API",
                "docs": "/docs",
                "health": "/api/contracts/transitions",
            }
        )

    return app


app = create_app()
