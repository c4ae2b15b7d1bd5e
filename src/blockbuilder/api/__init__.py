import logging
import os

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

from .routes import blocks, components

logger = logging.getLogger(__name__)


def create_app(config_obj=None) -> FastAPI:
    from .. import i18n
    from ..blocks import BlockManager
    from ..config import Config, StorageType
    from ..consts import CONFIG_FILE_DEFAULT
    from ..db import close_db, create_tables, init_db
    from ..errors import (
        BlockLocked,
        BlockNotFound,
        BlockValidationError,
        ComponentNotFound,
    )
    from ..registry import ComponentRegistry, load_components
    from ..storages import get_repository

    if config_obj is None:
        config_file = os.environ.get("CONFIG_FILE", CONFIG_FILE_DEFAULT)
        config_obj = Config.load_from_file(config_file)

    i18n.initialize(config_obj.language)

    app = FastAPI(title="BlockBuilder API")

    registry = (
        load_components(config_obj.components_file)
        if config_obj.components_file
        else ComponentRegistry()
    )

    if config_obj.storage.type == StorageType.DB:
        init_db(config_obj.storage.db_path)
        create_tables()

    app.state.config = config_obj
    app.state.registry = registry
    app.state.manager = BlockManager(get_repository(config=config_obj), registry)

    api_router = APIRouter(prefix="/api/v1")
    api_router.include_router(components.router)
    api_router.include_router(blocks.router)
    app.include_router(api_router)

    @app.exception_handler(BlockNotFound)
    @app.exception_handler(ComponentNotFound)
    def not_found(request: Request, exc: Exception):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(BlockLocked)
    def locked(request: Request, exc: BlockLocked):
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(BlockValidationError)
    def invalid(request: Request, exc: BlockValidationError):
        return JSONResponse(
            status_code=422,
            content={"detail": str(exc), "errors": exc.errors},
        )

    @app.on_event("shutdown")
    def shutdown_db():
        if config_obj.storage.type == StorageType.DB:
            close_db()

    logger.info(f"BlockBuilder API ready with {len(registry)} block types")
    return app
