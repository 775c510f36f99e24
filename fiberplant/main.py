import logging

from fastapi import FastAPI

from fiberplant.api.plant import router as plant_router
from fiberplant.errors import register_error_handlers
from fiberplant.logging import configure_logging

app = FastAPI(title="fiberplant API")
logger = logging.getLogger(__name__)
configure_logging()
register_error_handlers(app)


def _include_api_router(router, dependencies=None):
    app.include_router(router, prefix="/api/v1", dependencies=dependencies)


_include_api_router(plant_router)


@app.get("/health")
def health_check():
    return {"status": "ok"}
