import logging
from typing import Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorClient
from starlette.middleware.cors import CORSMiddleware

from backend.config import LOG_FORMAT, Settings
from backend.deps import Services
from backend.errors import AppError, AuthError, Conflict
from backend.models import utcnow
from backend.routes import routers

logger = logging.getLogger(__name__)


def _error_body(message: str, **extra) -> dict:
    return {"error": message, **extra}


def register_error_handlers(app: FastAPI):
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        body = _error_body(exc.message)
        headers = None
        if isinstance(exc, AuthError):
            headers = {"WWW-Authenticate": "Bearer"}
            if exc.clear_token:
                body["clearToken"] = True
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=body, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        problems = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        ]
        return JSONResponse(status_code=400, content=_error_body("Invalid request", details=problems))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=_error_body("Internal server error"))


def create_app(settings: Optional[Settings] = None, database=None, clock=utcnow) -> FastAPI:
    settings = settings or Settings.from_env()

    # Configure logging
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)

    # MongoDB connection
    client = None
    if database is None:
        client = AsyncIOMotorClient(settings.mongo_url)
        database = client[settings.db_name]

    services = Services.build(settings, database, clock=clock)

    app = FastAPI(title="EcoWarrior API")
    app.state.services = services

    # Router with the /api prefix
    api_router = APIRouter(prefix="/api")

    @api_router.get("/")
    async def root():
        return {"message": "EcoWarrior API is running"}

    for router in routers:
        api_router.include_router(router)
    app.include_router(api_router)

    app.add_middleware(
        CORSMiddleware,
        allow_credentials=True,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    @app.on_event("startup")
    async def prepare_database():
        if not services.tokens.configured:
            logger.critical("JWT_SECRET is not set; every authenticated request will fail")
        await services.store.ensure_indexes()
        if settings.superadmin_email and settings.superadmin_password:
            try:
                await services.admin.seed_superadmin(
                    settings.superadmin_email,
                    settings.superadmin_password,
                    settings.superadmin_username,
                )
            except Conflict:
                logger.info("Superadmin already exists")

    @app.on_event("shutdown")
    async def shutdown_db_client():
        if client is not None:
            client.close()

    return app


app = create_app()
