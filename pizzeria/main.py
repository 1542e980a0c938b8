import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

import pizzeria.model  # noqa: F401  registers every table on Base.metadata
from pizzeria.database import Base, engine
from pizzeria.routers.advent_routes import router as advent_router
from pizzeria.routers.auth_routes import router as auth_router
from pizzeria.routers.delivery_routes import router as delivery_router
from pizzeria.routers.email_routes import router as email_router
from pizzeria.routers.faq_routes import router as faq_router
from pizzeria.routers.kitchen_routes import router as kitchen_router
from pizzeria.routers.menu_routes import router as menu_router
from pizzeria.routers.order_routes import router as order_router
from pizzeria.routers.promo_routes import router as promo_router
from pizzeria.routers.reward_routes import router as reward_router
from pizzeria.routers.settings_routes import router as settings_router
from pizzeria.routers.ws_router import router as ws_router
from pizzeria.utils.config import settings
from pizzeria.utils.middleware.logger import LoggingMiddleware, setup_logging

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger("pizzeria")

app = FastAPI(title="Favilla's Pizzeria API")

app.add_middleware(LoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request data", "details": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.on_event("startup")
def create_tables():
    Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health():
    return {"status": "ok"}


app.include_router(auth_router)
app.include_router(menu_router)
app.include_router(order_router)
app.include_router(kitchen_router)
app.include_router(reward_router)
app.include_router(settings_router)
app.include_router(promo_router)
app.include_router(delivery_router)
app.include_router(faq_router)
app.include_router(advent_router)
app.include_router(email_router)
app.include_router(ws_router)
