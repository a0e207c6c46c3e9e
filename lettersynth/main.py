from __future__ import annotations

import argparse
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from lettersynth.api import bindings, commands, graph, units
from lettersynth.core.config import get_settings
from lettersynth.core.container import build_container
from lettersynth.core.logging import configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.debug)

    app.state.container = build_container(settings)
    yield


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)

    app.include_router(units.router, prefix=settings.api_prefix)
    app.include_router(bindings.router, prefix=settings.api_prefix)
    app.include_router(commands.router, prefix=settings.api_prefix)
    app.include_router(graph.router, prefix=settings.api_prefix)

    @app.get(f"{settings.api_prefix}/health")
    async def health() -> dict[str, str | bool | int]:
        container = app.state.container
        return {
            "status": "ok",
            "sample_rate": settings.sample_rate,
            "block_size": settings.block_size,
            "bound_letters": len(container.registry),
            "playing": container.command_service.playing,
        }

    return app


app = create_app()


def run() -> None:
    parser = argparse.ArgumentParser(description="Run the lettersynth API")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--log-level", default="info")
    parser.add_argument("--reload", action=argparse.BooleanOptionalAction, default=False)
    parser.add_argument("--seed", type=int, default=None, help="Seed for the startup letter bindings.")
    parser.add_argument("--debug", action=argparse.BooleanOptionalAction, default=None)
    args = parser.parse_args()

    if args.seed is not None:
        os.environ["LETTERSYNTH_BINDING_SEED"] = str(args.seed)
    if args.debug is True:
        os.environ["LETTERSYNTH_DEBUG"] = "1"
    elif args.debug is False:
        os.environ["LETTERSYNTH_DEBUG"] = "0"

    get_settings.cache_clear()
    globals()["app"] = create_app()

    uvicorn.run(
        "lettersynth.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    run()
