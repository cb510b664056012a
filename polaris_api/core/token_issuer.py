"""Signed, time-limited session tokens (HS256 JWT)."""

import logging
import uuid
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import jwt

from ..errors import InvalidSignatureError, MalformedTokenError, TokenExpiredError

logger = logging.getLogger(__name__)

REQUIRED_CLAIMS = ["sub", "iat", "exp"]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SessionTokenIssuer:
    """Issues and verifies bearer tokens binding a session to an openid.

    Holds its own secret and lifetime; construct one per application (or per
    test) and pass it to whatever needs to issue or verify tokens.
    """

    def __init__(
        self,
        secret: str,
        expire_hours: int = 72,
        algorithm: str = "HS256",
        clock: Callable[[], datetime] = _utcnow,
    ):
        if not secret:
            raise ValueError("token secret must not be empty")
        self._secret = secret
        self.algorithm = algorithm
        self.ttl = timedelta(hours=expire_hours)
        self._clock = clock

    @property
    def ttl_seconds(self) -> int:
        return int(self.ttl.total_seconds())

    def issue(self, subject: str) -> str:
        """Create a token for ``subject`` expiring ``ttl`` from now."""
        now = self._clock()
        payload = {
            "sub": subject,
            "iat": now,
            "exp": now + self.ttl,
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> str:
        """Return the token subject.

        Expiry is checked before the signature, so an expired token is
        reported as expired whether or not its signature is valid.

        Raises:
            MalformedTokenError: token cannot be parsed or lacks claims
            TokenExpiredError: ``now > exp``
            InvalidSignatureError: signature does not match
        """
        try:
            unverified = jwt.decode(token, options={"verify_signature": False})
        except jwt.InvalidTokenError as e:
            raise MalformedTokenError() from e

        exp = unverified.get("exp")
        if not isinstance(exp, int | float) or isinstance(exp, bool):
            raise MalformedTokenError()
        if self._clock().timestamp() > exp:
            raise TokenExpiredError()

        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "require": REQUIRED_CLAIMS,
                },
            )
        except jwt.InvalidSignatureError as e:
            raise InvalidSignatureError() from e
        except jwt.InvalidTokenError as e:
            raise MalformedTokenError() from e

        subject = claims.get("sub")
        if not isinstance(subject, str) or not subject:
            raise MalformedTokenError()
        return subject
