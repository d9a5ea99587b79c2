# sourcefinder/api/main.py
import logging
import os
import re

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sourcefinder.api.routers import citations, health, sources, styles
from sourcefinder.core.errors import ProviderError, ValidationError
from sourcefinder.core.settings import Settings, load_settings
from sourcefinder.discovery.orchestrator import SourceDiscovery, build_discovery

logger = logging.getLogger(__name__)

env = os.getenv("APP_ENV", "local")
load_dotenv(".env.local" if env == "local" else ".env")


def _cors_kwargs(origins: list[str]) -> dict:
    """Exact origins plus trailing-* prefixes; an empty list allows any origin."""
    if not origins or "*" in origins:
        return {"allow_origins": ["*"]}
    exact = [o for o in origins if not o.endswith("*")]
    prefixes = [re.escape(o[:-1]) + ".*" for o in origins if o.endswith("*")]
    kwargs = {"allow_origins": exact}
    if prefixes:
        kwargs["allow_origin_regex"] = "|".join(prefixes)
    return kwargs


def create_app(
    settings: Settings | None = None,
    discovery: SourceDiscovery | None = None,
) -> FastAPI:
    settings = settings or load_settings()
    discovery = discovery or build_discovery(settings)

    app = FastAPI(
        title="SourceFinder API",
        version="1.0.0",
        description="Find scholarly sources for a claim and render citations.",
    )
    app.state.settings = settings
    app.state.discovery = discovery

    app.add_middleware(
        CORSMiddleware,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["content-type"],
        **_cors_kwargs(settings.cors_origins),
    )

    @app.exception_handler(ValidationError)
    async def _validation_error(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def _request_shape_error(request: Request, exc: RequestValidationError):
        logger.warning("Malformed request to %s: %s", request.url.path, exc.errors())
        return JSONResponse(status_code=400, content={"error": "Invalid request payload"})

    @app.exception_handler(ProviderError)
    async def _provider_error(request: Request, exc: ProviderError):
        logger.warning("Upstream fetch failed for %s: %s", request.url.path, exc)
        return JSONResponse(status_code=502, content={"error": "Unable to fetch the requested resource."})

    @app.exception_handler(Exception)
    async def _unexpected_error(request: Request, exc: Exception):
        logger.error("Unhandled error in %s", request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    app.include_router(health.router)
    app.include_router(styles.router, tags=["Styles"])
    app.include_router(citations.router, tags=["Citations"])
    app.include_router(sources.router, prefix="/sources", tags=["Sources"])

    @app.get("/")
    async def root():
        return {
            "name": "sourcefinder",
            "status": "ok",
            "endpoints": ["/health", "/styles", "/cite", "/sources/suggest"],
        }

    return app


# Module-level app for `uvicorn sourcefinder.api.main:app`
app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "3000")))
