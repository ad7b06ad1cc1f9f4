"""AuthTokens value object"""

import time
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from typing import Any

from wstrade.shared.exceptions import TransportError

ACCESS_TOKEN_HEADER = "x-access-token"
REFRESH_TOKEN_HEADER = "x-refresh-token"
EXPIRES_HEADER = "x-access-token-expires"


@dataclass(frozen=True)
class AuthTokens:
    """Access/refresh token pair with the access token's expiry (unix seconds)"""

    access: str = ""
    refresh: str = ""
    expires: int = 0

    @classmethod
    def empty(cls) -> "AuthTokens":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.access and not self.refresh

    def is_stale(
        self, now: float | None = None, skew_seconds: int = 0
    ) -> bool:
        """Check whether the access token must not be used without refreshing

        Args:
            now: Unix timestamp to compare against (defaults to current time)
            skew_seconds: Treat tokens expiring within this window as stale

        Returns:
            True if expires <= now + skew_seconds
        """
        if now is None:
            now = time.time()
        return self.expires <= now + skew_seconds

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "AuthTokens":
        """Build tokens from a login/refresh response's headers

        Raises:
            TransportError: If a token header is missing or malformed
        """
        lowered = {k.lower(): v for k, v in headers.items()}
        missing = [
            name
            for name in (ACCESS_TOKEN_HEADER, REFRESH_TOKEN_HEADER, EXPIRES_HEADER)
            if not lowered.get(name)
        ]
        if missing:
            raise TransportError(
                f"Authentication response missing headers: {missing}",
                headers=dict(lowered),
            )

        try:
            expires = int(float(lowered[EXPIRES_HEADER]))
        except ValueError as e:
            raise TransportError(
                f"Invalid token expiry: {lowered[EXPIRES_HEADER]!r}"
            ) from e

        return cls(
            access=lowered[ACCESS_TOKEN_HEADER],
            refresh=lowered[REFRESH_TOKEN_HEADER],
            expires=expires,
        )

    @classmethod
    def from_mapping(cls, state: Mapping[str, Any]) -> "AuthTokens":
        """Build tokens from an externally persisted {access, refresh, expires} mapping"""
        return cls(
            access=str(state.get("access") or ""),
            refresh=str(state.get("refresh") or ""),
            expires=int(state.get("expires") or 0),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def __repr__(self) -> str:
        # Never print raw token material
        return (
            f"AuthTokens(access={'***' if self.access else ''!r}, "
            f"refresh={'***' if self.refresh else ''!r}, expires={self.expires})"
        )
