# mfgops/main.py

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import configure_logging, settings
from .database import create_db_and_tables
from .errors import ServiceError
from .seed_data import seed_master_data
from .services.view_cache import ViewCache

from .api import customer_orders as customer_orders_api
from .api import production_orders as production_orders_api
from .api import dashboard as dashboard_api
from .api import data as data_api
from .api import products as products_api
from .api import work_centers as work_centers_api

logger = logging.getLogger(__name__)


app = FastAPI(title="Manufacturing Operations Back Office")
app.state.view_cache = ViewCache()

# Include API routers
app.include_router(customer_orders_api.router)
app.include_router(production_orders_api.router)
app.include_router(dashboard_api.router)
app.include_router(data_api.router)
app.include_router(products_api.router)
app.include_router(work_centers_api.router)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.on_event("startup")
async def startup_event():
    configure_logging()
    create_db_and_tables()
    if settings.seed_on_startup:
        seed_master_data()
    logger.info("Back office started (database: %s)", settings.database_url.split("://")[0])


@app.get("/health")
def health():
    return {"ok": True}
