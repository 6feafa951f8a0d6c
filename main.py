from contextlib import asynccontextmanager
import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.common.config import APP_NAME, CORS_ORIGINS, LOG_LEVEL, PORT
from api.common.database import init_firebase
from api.common.logging_config import setup_logging
from api.common.schemas import JSendResponse

setup_logging(LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting %s", APP_NAME)
    init_firebase()
    yield
    logger.info("Shutting down %s", APP_NAME)


app = FastAPI(title=APP_NAME, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    response = await call_next(request)
    logger.info("%s %s -> %s", request.method, request.url.path, response.status_code)
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Answer invalid requests with a JSend fail body listing the errors."""
    body = JSendResponse.fail({"errors": jsonable_encoder(exc.errors())})
    return JSONResponse(status_code=422, content=body.model_dump(mode="json", exclude_none=True))


from api.categories.routers import router as categories_router
from api.suppliers.routers import router as suppliers_router
from api.products.routers import router as products_router
from api.stats.routers import router as stats_router
from api.customers.routers import router as customers_router
from api.sales.routers import router as sales_router
from api.wishlist.routers import router as wishlist_router
from api.health.routers import router as health_router

app.include_router(categories_router, prefix="/api/categories", tags=["categories"])
app.include_router(suppliers_router, prefix="/api/suppliers", tags=["suppliers"])
app.include_router(products_router, prefix="/api/products", tags=["products"])
app.include_router(stats_router, prefix="/api/stats", tags=["stats"])
app.include_router(customers_router, prefix="/api/customers", tags=["customers"])
app.include_router(sales_router, prefix="/api/sales", tags=["sales"])
app.include_router(wishlist_router, prefix="/api", tags=["wishlist"])
app.include_router(health_router, prefix="/api", tags=["health"])


@app.get("/")
def read_root():
    """Root endpoint for the API.
    Returns:
        A simple message indicating the API is running.
    """
    return {"message": APP_NAME}


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=PORT)
