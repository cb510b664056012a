"""WeChat login, session refresh and profile management."""

import asyncio
import logging
from collections.abc import Callable
from typing import Protocol

import httpx

from ..errors import (
    AppError,
    ConflictError,
    ExternalAuthError,
    UpstreamTimeoutError,
    UserNotFoundError,
)
from ..models import LoginResponse, RefreshTokenResponse, User, UserInfo
from ..storage import UserStore, now_ms
from ..telemetry import TelemetryEvents, bind_openid, track_event
from ..wechat.models import Code2SessionResult
from .guard import call_store
from .token_issuer import SessionTokenIssuer

logger = logging.getLogger(__name__)


class IdentityExchange(Protocol):
    """Exchanges a one-time client login code for a stable external id."""

    async def code_to_session(self, code: str) -> Code2SessionResult: ...


class AuthService:
    """Orchestrates login: code exchange, user upsert and token issuance.

    Identity exchange and every user store call run under ``timeout``
    seconds; when it elapses the call fails with UpstreamTimeoutError.
    """

    def __init__(
        self,
        users: UserStore,
        identity: IdentityExchange,
        issuer: SessionTokenIssuer,
        timeout: float | None = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.users = users
        self.identity = identity
        self.issuer = issuer
        self.timeout = timeout
        self._clock = clock

    async def login(self, code: str, nick_name: str = "", avatar_url: str = "") -> LoginResponse:
        """Log a user in with a ``wx.login`` code.

        Creates the user on first login; otherwise refreshes the profile and
        last login time. A concurrent first login for the same openid causes
        one retry, which then finds the user created by the other request.
        """
        try:
            openid = await self._exchange_code(code)
        except AppError as e:
            track_event(TelemetryEvents.LOGIN_FAILED, {"error_code": int(e.code)})
            raise

        bind_openid(openid)

        try:
            user, is_new_user = await self._upsert_user(openid, nick_name, avatar_url)
        except ConflictError:
            logger.info("Concurrent first login detected, retrying upsert once")
            track_event(TelemetryEvents.LOGIN_CONFLICT_RETRIED)
            user, is_new_user = await self._upsert_user(openid, nick_name, avatar_url)

        token = self.issuer.issue(openid)

        logger.info(f"User logged in: id={user.id}, new={is_new_user}")
        track_event(TelemetryEvents.LOGIN_SUCCEEDED, {"is_new_user": is_new_user})

        return LoginResponse(
            token=token,
            user_info=UserInfo.from_user(user),
            is_new_user=is_new_user,
        )

    async def _exchange_code(self, code: str) -> str:
        try:
            result = await asyncio.wait_for(self.identity.code_to_session(code), self.timeout)
        except (TimeoutError, httpx.TimeoutException) as e:
            logger.warning("WeChat code exchange timed out")
            raise UpstreamTimeoutError("wechat login timed out") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"WeChat code exchange failed: {e}")
            raise ExternalAuthError("wechat login failed: identity provider unavailable") from e

        if not result.ok:
            raise ExternalAuthError(f"wechat login failed: {result.errmsg or result.errcode}")
        if not result.openid:
            raise ExternalAuthError("wechat login failed: no openid returned")
        return result.openid

    async def _upsert_user(
        self, openid: str, nick_name: str, avatar_url: str
    ) -> tuple[User, bool]:
        now = self._clock()

        existing = await call_store(
            self.users.find_user_by_openid(openid), "look up user", self.timeout
        )
        if existing is None:
            user = await call_store(
                self.users.create_user(openid, nick_name, avatar_url, now),
                "create user",
                self.timeout,
            )
            track_event(TelemetryEvents.USER_CREATED, {"user_id": user.id})
            return user, True

        updated = await call_store(
            self.users.update_user(openid, nick_name, avatar_url, last_login_time=now),
            "update user",
            self.timeout,
        )
        if updated is None:
            # Removed between the read and the write
            raise ConflictError("user changed during login")
        return updated, False

    async def refresh_token(self, openid: str) -> RefreshTokenResponse:
        """Issue a fresh token for an existing user."""
        await self._require_user(openid)
        token = self.issuer.issue(openid)

        track_event(TelemetryEvents.TOKEN_REFRESHED)
        return RefreshTokenResponse(token=token, expires_in=self.issuer.ttl_seconds)

    async def get_user_info(self, openid: str) -> UserInfo:
        """Return the profile of the user identified by ``openid``."""
        user = await self._require_user(openid)
        return UserInfo.from_user(user)

    async def update_profile(self, openid: str, nick_name: str, avatar_url: str = "") -> UserInfo:
        """Replace the display name and avatar of an existing user."""
        await self._require_user(openid)

        updated = await call_store(
            self.users.update_user(openid, nick_name, avatar_url), "update user", self.timeout
        )
        if updated is None:
            raise UserNotFoundError()

        logger.info(f"User profile updated: id={updated.id}")
        track_event(TelemetryEvents.PROFILE_UPDATED)
        return UserInfo.from_user(updated)

    async def _require_user(self, openid: str) -> User:
        user = await call_store(
            self.users.find_user_by_openid(openid), "look up user", self.timeout
        )
        if user is None:
            raise UserNotFoundError()
        return user
