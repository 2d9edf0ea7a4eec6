import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.settings import settings
from .core.init_db import init_db
from .auth.errors import AuthError
from .auth.service import TokenIssuer
from .store.factory import make_store

from .auth.router import router as auth_router
from .user.router import router as user_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


async def auth_error_handler(request: Request, exc: AuthError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message, "error": exc.code})


async def validation_error_handler(request: Request, exc: RequestValidationError):
    fields = sorted({str(err["loc"][-1]) for err in exc.errors() if err.get("loc")})
    message = "Invalid request body"
    if fields:
        message = f"Missing or invalid fields: {', '.join(fields)}"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": message, "error": "InvalidRequest"},
    )


def create_app(issuer: TokenIssuer | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if issuer is None:
            store = make_store(settings)
            if settings.SEED_DEMO_USERS:
                init_db(store)
            app.state.issuer = TokenIssuer.from_settings(settings, store)
        else:
            app.state.issuer = issuer
        logger.info("%s ready (token transport: %s)", settings.PROJECT_NAME, settings.TOKEN_TRANSPORT)
        yield

    app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

    # Cookies only travel cross-origin with explicit origins and credentials
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(auth_router)
    app.include_router(user_router)

    @app.get("/")
    def read_root():
        return {"message": f"Welcome to {settings.PROJECT_NAME}"}

    return app


app = create_app()
