import logging
from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI

from estate_backend.api.access import access_router
from estate_backend.api.exceptions import register_exception_handlers
from estate_backend.database import get_db
from estate_backend.permissions.auth import get_current_principal
from estate_backend.permissions.catalog import seed_access_catalog
from estate_backend.settings import settings

logger = logging.getLogger(__name__)


def startup_logic():
    with next(get_db()) as db:
        seed_access_catalog(db)
    logger.info("Access catalog seeded")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.SEED_ON_STARTUP:
        startup_logic()
    yield


def create_app() -> FastAPI:

    app = FastAPI(lifespan=lifespan)

    register_exception_handlers(app)

    app.include_router(
        access_router,
        prefix="/access",
        tags=["access"],
        dependencies=[Depends(get_current_principal)]
    )

    return app


app = create_app()
