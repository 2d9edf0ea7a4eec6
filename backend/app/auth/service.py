from datetime import datetime, timedelta, timezone
from typing import Annotated, Callable
import logging
import uuid

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import ValidationError

from ..core.security import verify_password
from ..core.settings import Settings
from ..models.JWTAuthToken import AccessClaims, CredentialPair
from ..models.User import User
from ..store.base import TokenStore
from .errors import InvalidDuration, InvalidToken, TokenExpired, Unauthenticated, UserNotFound

logger = logging.getLogger(__name__)

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"

# OAuth2 scheme (for extracting token from header); the cookie is the fallback
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="login", auto_error=False)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenIssuer:
    """
    Mints, verifies, rotates and revokes access/refresh token pairs.

    Access tokens are verified statelessly. Refresh tokens must also be
    present in the store's issued refresh set; rotation consumes the old
    token and records the new one, so each lineage has exactly one live
    refresh token.

    ``clock`` only drives issuance (``iat``/``exp``); verification uses
    the JWT library's own expiry check.
    """

    def __init__(
        self,
        store: TokenStore,
        access_secret: str,
        refresh_secret: str,
        algorithm: str = "HS256",
        access_token_expire_minutes: int = 15,
        refresh_token_expire_days: int = 7,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.access_secret = access_secret
        self.refresh_secret = refresh_secret
        self.algorithm = algorithm
        self.access_token_expire_minutes = access_token_expire_minutes
        self.refresh_token_expire_days = refresh_token_expire_days
        self.clock = clock

    @classmethod
    def from_settings(cls, settings: Settings, store: TokenStore) -> "TokenIssuer":
        return cls(
            store=store,
            access_secret=settings.ACCESS_TOKEN_SECRET,
            refresh_secret=settings.REFRESH_TOKEN_SECRET,
            algorithm=settings.ALGORITHM,
            access_token_expire_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
            refresh_token_expire_days=settings.REFRESH_TOKEN_EXPIRE_DAYS,
        )

    def _resolve_max_age(self, access_token_max_age: int | None) -> int:
        if access_token_max_age is None:
            return self.access_token_expire_minutes
        if isinstance(access_token_max_age, bool) or not isinstance(access_token_max_age, int):
            raise InvalidDuration()
        if access_token_max_age <= 0:
            raise InvalidDuration()
        return access_token_max_age

    def issue_tokens(self, user: User, access_token_max_age: int | None = None) -> CredentialPair:
        """
        Mint a new access/refresh pair for ``user`` and record the refresh token.
        """
        minutes = self._resolve_max_age(access_token_max_age)
        now = self.clock()
        access_expires_at = now + timedelta(minutes=minutes)

        access_token = jwt.encode(
            {
                "id": user.id,
                "username": user.username,
                "name": user.name,
                "iat": now,
                "exp": access_expires_at,
            },
            self.access_secret,
            algorithm=self.algorithm,
        )
        # jti keeps two pairs minted in the same second distinct
        refresh_token = jwt.encode(
            {
                "id": user.id,
                "jti": uuid.uuid4().hex,
                "iat": now,
                "exp": now + timedelta(days=self.refresh_token_expire_days),
            },
            self.refresh_secret,
            algorithm=self.algorithm,
        )

        self.store.add_refresh_token(refresh_token)
        logger.info("Issued tokens for user %s (access lifetime %s min)", user.id, minutes)
        return CredentialPair(
            access_token=access_token,
            refresh_token=refresh_token,
            access_token_max_age=minutes,
            access_expires_at=access_expires_at,
        )

    def verify_access(self, token: str | None) -> AccessClaims:
        if not token:
            raise Unauthenticated()
        try:
            payload = jwt.decode(token, self.access_secret, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise TokenExpired()
        except JWTError:
            raise InvalidToken()

        try:
            return AccessClaims.model_validate(payload)
        except ValidationError:
            raise InvalidToken()

    def rotate_refresh(self, old_token: str | None, access_token_max_age: int | None = None) -> CredentialPair:
        """
        Exchange a live refresh token for a fresh pair.

        The set is checked before the signature, so a revoked token is
        rejected even when it is still well-signed and unexpired. An
        expired token is purged from the set before TokenExpired is raised.
        """
        if not old_token:
            raise Unauthenticated("Refresh token missing")
        self._resolve_max_age(access_token_max_age)

        if not self.store.has_refresh_token(old_token):
            raise InvalidToken("Invalid refresh token")

        try:
            payload = jwt.decode(old_token, self.refresh_secret, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            self.store.remove_refresh_token(old_token)
            logger.info("Purged expired refresh token")
            raise TokenExpired("Refresh token expired")
        except JWTError:
            raise InvalidToken("Invalid refresh token")

        user_id = payload.get("id")
        user = self.store.get_user(user_id) if isinstance(user_id, int) else None
        if user is None:
            raise UserNotFound()

        if not self.store.remove_refresh_token(old_token):
            # Another rotation consumed it first
            logger.warning("Refresh token for user %s was already consumed", user_id)
            raise InvalidToken("Invalid refresh token")

        pair = self.issue_tokens(user, access_token_max_age)
        logger.info("Rotated refresh token for user %s", user_id)
        return pair

    def revoke(self, token: str | None) -> None:
        if token and self.store.remove_refresh_token(token):
            logger.info("Revoked refresh token")


def authenticate_user(store: TokenStore, username: str, password: str) -> User | None:
    user = store.get_user_by_username(username)
    if not user:
        return None
    if not verify_password(password, user.password):
        return None
    return user


async def get_issuer(request: Request) -> TokenIssuer:
    return request.app.state.issuer


async def get_current_user(
    request: Request,
    token: Annotated[str | None, Depends(oauth2_scheme)],
    issuer: Annotated[TokenIssuer, Depends(get_issuer)],
) -> AccessClaims:
    """
    Resolve the caller from the bearer header or, failing that, the access cookie.
    """
    claims = issuer.verify_access(token or request.cookies.get(ACCESS_COOKIE))
    if issuer.store.get_user(claims.id) is None:
        raise UserNotFound()
    return claims
