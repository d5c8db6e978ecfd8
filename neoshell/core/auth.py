"""Login / relogin policy for the authenticated server session.

The transport is injected: ``login`` and ``relogin`` are callables that talk
to the server and return fresh tokens, ``request`` callables receive the
current access token. A request rejected with ``UnauthorizedError`` triggers
one relogin and exactly one retry.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar
import logging
from neoshell.core.errors import AuthError, UnauthorizedError

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass
class SessionTokens:
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None

    def update(self, access_token: str, refresh_token: Optional[str]) -> None:
        self.access_token = access_token
        self.refresh_token = refresh_token


LoginFn = Callable[[str, str], SessionTokens]
ReloginFn = Callable[[str], SessionTokens]


class AuthSession:
    def __init__(self, user: str, password: str, login: LoginFn, relogin: ReloginFn,
                 tokens: Optional[SessionTokens] = None):
        self.user = user
        self.password = password
        self._login = login
        self._relogin = relogin
        self.tokens = tokens or SessionTokens()

    def login(self) -> None:
        fresh = self._login(self.user, self.password)
        if not fresh.access_token:
            raise AuthError("login failed: no access token returned")
        self.tokens.update(fresh.access_token, fresh.refresh_token)
        logger.debug("Logged in as %s", self.user)

    def relogin(self) -> None:
        if not self.tokens.refresh_token:
            raise AuthError("no refresh token available")
        fresh = self._relogin(self.tokens.refresh_token)
        if not fresh.access_token:
            raise AuthError("relogin failed: no access token returned")
        self.tokens.update(fresh.access_token, fresh.refresh_token)
        logger.debug("Refreshed access token for %s", self.user)

    def execute(self, request: Callable[[str], T]) -> T:
        if not self.tokens.access_token:
            self.login()
        try:
            return request(self.tokens.access_token)
        except UnauthorizedError:
            logger.debug("Request unauthorized, attempting relogin")
            self.relogin()
            return request(self.tokens.access_token)
