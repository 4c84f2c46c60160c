from __future__ import annotations

import argparse
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from patchgraph.app.api import compiler, devices, registry
from patchgraph.app.core.config import Settings, get_settings
from patchgraph.app.core.container import AppContainer
from patchgraph.app.core.logging import configure_logging
from patchgraph.app.registry.builtin import load_builtin_registry
from patchgraph.app.registry.devices import DEVICE_ALIASES, load_builtin_devices
from patchgraph.app.services.compiler_service import CompilerService
from patchgraph.app.services.composer import Composer
from patchgraph.app.services.controller_injector import ControllerInjector
from patchgraph.app.services.controller_mapper import ControllerMapper
from patchgraph.app.services.device_service import DeviceService
from patchgraph.app.services.graph_builder import GraphBuilder
from patchgraph.app.services.pd_serializer import PdSerializer
from patchgraph.app.services.rack_serializer import RackSerializer
from patchgraph.app.services.resolver_service import ReferenceResolver


def _build_container(settings: Settings) -> AppContainer:
    registry_catalog = load_builtin_registry(settings.vcv_registry_dir)
    resolver = ReferenceResolver(registry_catalog)
    device_service = DeviceService(load_builtin_devices(), aliases=DEVICE_ALIASES)
    compiler_service = CompilerService(
        settings=settings,
        graph_builder=GraphBuilder(resolver),
        composer=Composer(resolver),
        device_service=device_service,
        controller_mapper=ControllerMapper(),
        controller_injector=ControllerInjector(),
        pd_serializer=PdSerializer(settings),
        rack_serializer=RackSerializer(settings),
    )

    return AppContainer(
        settings=settings,
        registry=registry_catalog,
        resolver=resolver,
        device_service=device_service,
        compiler_service=compiler_service,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.debug)
    app.state.container = _build_container(settings)
    yield


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(registry.router, prefix=settings.api_prefix)
    app.include_router(devices.router, prefix=settings.api_prefix)
    app.include_router(compiler.router, prefix=settings.api_prefix)

    @app.get(f"{settings.api_prefix}/health")
    async def health() -> dict[str, str | int]:
        container: AppContainer = app.state.container
        return {
            "status": "ok",
            "version": settings.app_version,
            "registry_entries": len(container.registry),
            "rack_version": settings.rack_version,
        }

    return app


app = create_app()


def run() -> None:
    parser = argparse.ArgumentParser(description="Run the patchgraph compiler API")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--log-level", default="info")
    parser.add_argument("--reload", action=argparse.BooleanOptionalAction, default=False)
    parser.add_argument("--debug", action=argparse.BooleanOptionalAction, default=None)
    parser.add_argument("--id-seed", type=int, default=None, help="Seed rack module and cable ids.")
    args = parser.parse_args()

    if args.debug is True:
        os.environ["PATCHGRAPH_DEBUG"] = "1"
    elif args.debug is False:
        os.environ["PATCHGRAPH_DEBUG"] = "0"
    if args.id_seed is not None:
        os.environ["PATCHGRAPH_ID_SEED"] = str(args.id_seed)

    get_settings.cache_clear()
    globals()["app"] = create_app()

    uvicorn.run(
        "patchgraph.app.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    run()
