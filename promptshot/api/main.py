"""Main FastAPI application for PromptShot."""

import argparse
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from promptshot.core.config import PromptShotConfig, get_config, load_config, set_config
from promptshot.core.constants import VERSION
from promptshot.core.env_loader import ensure_env_loaded
from promptshot.core.logging_config import LogLevel, get_logger, setup_logging
from promptshot.llm.gateway import CompletionGateway, GeminiGateway
from promptshot.workflow import StageEngine
from promptshot.api.routers import workflow

logger = get_logger("api.main")


def create_app(
    gateway: Optional[CompletionGateway] = None,
    config: Optional[PromptShotConfig] = None
) -> FastAPI:
    """
    Build the application around a single workflow session.

    Args:
        gateway: Completion gateway; built from environment credentials if omitted
        config: Configuration; the global configuration if omitted
    """
    config = config or get_config()

    if gateway is None:
        ensure_env_loaded()
        gateway = GeminiGateway.from_env(config.llm)

    app = FastAPI(
        title="PromptShot API",
        description="AI assistant director for storyboard, animation and video prompts",
        version=VERSION,
    )

    app.state.engine = StageEngine(gateway, config=config)

    # Rate limiter per app, registered on app state for slowapi
    limiter = Limiter(key_func=get_remote_address, enabled=config.server.rate_limit_enabled)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    router = workflow.create_router(limiter, config.server.action_rate_limit)
    app.include_router(router, prefix="/api/workflow", tags=["workflow"])

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    logger.info("PromptShot API ready")
    return app


def start_server(host: str = "127.0.0.1", port: int = 8000, reload: bool = False):
    """Start the FastAPI server."""
    uvicorn.run(
        "promptshot.api.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level="warning",
    )


def main():
    parser = argparse.ArgumentParser(description="Run the PromptShot API server")
    parser.add_argument("--config", type=Path, default=None, help="Path to a JSON config file")
    parser.add_argument("--host", default=None)
    parser.add_argument("--port", type=int, default=None)
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    config = load_config(args.config)
    set_config(config)
    setup_logging(
        level=LogLevel.DEBUG if args.debug else LogLevel.INFO,
        log_file=config.log_file,
        verbose=config.verbose_logging,
    )
    start_server(host=args.host or config.server.host, port=args.port or config.server.port)


if __name__ == "__main__":
    main()
