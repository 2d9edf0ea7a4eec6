from typing import Annotated
import logging

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse, Response

from ..core.settings import settings
from ..models.JWTAuthToken import AccessClaims, CredentialPair
from ..models.User import LoginRequest, RefreshRequest, UserResponse
from .errors import InvalidCredentials, InvalidDuration, TokenExpired
from .service import (
    ACCESS_COOKIE,
    REFRESH_COOKIE,
    TokenIssuer,
    authenticate_user,
    get_current_user,
    get_issuer,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

REFRESH_COOKIE_MAX_AGE = settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60


def client_max_age(value: int | None) -> int | None:
    """
    Bound a caller-supplied access token lifetime to [1, ACCESS_TOKEN_MAX_AGE_LIMIT] minutes.
    """
    if value is None:
        return None
    if value < 1 or value > settings.ACCESS_TOKEN_MAX_AGE_LIMIT:
        raise InvalidDuration(
            f"accessTokenMaxAge must be an integer between 1 and {settings.ACCESS_TOKEN_MAX_AGE_LIMIT}"
        )
    return value


def set_credential_cookies(response: Response, pair: CredentialPair) -> None:
    if settings.uses_cookie_transport:
        response.set_cookie(
            ACCESS_COOKIE,
            pair.access_token,
            max_age=pair.access_token_max_age * 60,
            httponly=True,
            secure=settings.secure_cookies,
            samesite="strict",
        )
    response.set_cookie(
        REFRESH_COOKIE,
        pair.refresh_token,
        max_age=REFRESH_COOKIE_MAX_AGE,
        httponly=True,
        secure=settings.secure_cookies,
        samesite="strict",
    )


def clear_credential_cookies(response: Response) -> None:
    response.delete_cookie(ACCESS_COOKIE, httponly=True, secure=settings.secure_cookies, samesite="strict")
    response.delete_cookie(REFRESH_COOKIE, httponly=True, secure=settings.secure_cookies, samesite="strict")


def credential_body(pair: CredentialPair, message: str) -> dict:
    body = {"accessTokenMaxAge": pair.access_token_max_age, "message": message}
    if settings.uses_header_transport:
        body["accessToken"] = pair.access_token
    return body


@router.post("/login")
async def login(
    login_data: LoginRequest,
    response: Response,
    issuer: Annotated[TokenIssuer, Depends(get_issuer)],
):
    """
    Login with username and password; sets the credential cookies.
    """
    max_age = client_max_age(login_data.access_token_max_age)
    user = authenticate_user(issuer.store, login_data.username, login_data.password)
    if not user:
        logger.info("POST /login 401 for username %r", login_data.username)
        raise InvalidCredentials()

    pair = issuer.issue_tokens(user, max_age)
    set_credential_cookies(response, pair)
    logger.info("POST /login 200 for user %s", user.id)

    body = credential_body(pair, "Login successful")
    body["user"] = UserResponse(id=user.id, username=user.username, name=user.name).model_dump()
    return body


@router.post("/refresh-token")
async def refresh_token(
    request: Request,
    response: Response,
    issuer: Annotated[TokenIssuer, Depends(get_issuer)],
    refresh_data: Annotated[RefreshRequest | None, Body()] = None,
):
    """
    Rotate the refresh cookie into a fresh access/refresh pair.
    """
    requested = refresh_data.access_token_max_age if refresh_data else None
    max_age = client_max_age(requested)
    try:
        pair = issuer.rotate_refresh(request.cookies.get(REFRESH_COOKIE), max_age)
    except TokenExpired as e:
        expired = JSONResponse(status_code=e.status_code, content={"message": e.message, "error": e.code})
        clear_credential_cookies(expired)
        return expired

    set_credential_cookies(response, pair)
    return credential_body(pair, "Token refreshed successfully")


@router.get("/me")
async def me(current_user: Annotated[AccessClaims, Depends(get_current_user)]):
    return {"user": current_user.model_dump()}


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    issuer: Annotated[TokenIssuer, Depends(get_issuer)],
):
    """
    Revoke the refresh cookie if one was sent and clear both cookies.
    """
    issuer.revoke(request.cookies.get(REFRESH_COOKIE))
    clear_credential_cookies(response)
    return {"message": "Logged out successfully"}
