import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

# Load env from coincraft/.env
package_dir = os.path.dirname(os.path.abspath(__file__))
if "PYTEST_CURRENT_TEST" not in os.environ:
    load_dotenv(dotenv_path=os.path.join(package_dir, ".env"))

from coincraft.core.config import settings, validate_config
from coincraft.core.database import create_all_tables, get_database_url
from coincraft.core.errors import (
    AppError,
    app_error_handler,
    http_error_handler,
    request_validation_handler,
    unhandled_exception_handler,
)
from coincraft.core.logging import configure_logging
from coincraft.core.middleware.request_id import RequestIdMiddleware
from coincraft.core.validation import validate_env
from coincraft.api import dashboard, envelopes, gamification, health, streaks

configure_logging(settings.ENV)
validate_env()
validate_config(strict=getattr(settings, "CONFIG_STRICT", False))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = logging.getLogger("coincraft")
    logger.info("Starting CoinCraft rules service...")
    if get_database_url():
        create_all_tables()
    try:
        yield
    finally:
        logging.getLogger("coincraft").info("Stopping CoinCraft rules service...")


app = FastAPI(title="CoinCraft - Rules Service", version="0.1.0", lifespan=lifespan)

app.add_middleware(RequestIdMiddleware)

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(StarletteHTTPException, http_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.root_router, tags=["health"])
app.include_router(streaks.router, tags=["streaks"])
app.include_router(envelopes.router)
app.include_router(dashboard.router)
app.include_router(gamification.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("coincraft.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")), reload=False)
