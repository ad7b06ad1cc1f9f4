"""TokenStore - current authentication tokens for one session"""

from wstrade.domain.models import AuthTokens


class TokenStore:
    """Holds the session's AuthTokens

    Tokens are immutable and swapped as a whole, so readers always see a
    consistent access/refresh/expires triple.
    """

    def __init__(self, tokens: AuthTokens | None = None) -> None:
        self._tokens = tokens or AuthTokens.empty()

    @property
    def current(self) -> AuthTokens:
        return self._tokens

    def replace(self, tokens: AuthTokens) -> None:
        self._tokens = tokens

    def clear(self) -> None:
        self._tokens = AuthTokens.empty()

    def is_stale(self, now: float | None = None) -> bool:
        return self._tokens.is_stale(now)
