# Student Centered Open Online Learning (SCOOL) CAS Login
# Copyright (c) 2021-2024  Fresno State University, SCOOL Project Team
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Sessions

``CasLogin`` keeps the authenticated user in a session identified by a
cookie. It only relies on the ``Sessions`` and ``Session`` interfaces below,
storage and expiry are up to the implementation. ``MemorySessions`` keeps
everything in the current process, which is enough for tests and single
worker deployments.
"""

import abc
import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import shortuuid

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response

logger = logging.getLogger(__name__)

NowFunc = Callable[[], float]


class Session(abc.ABC):
    def __init__(self, sessions: "Sessions", session_id: str) -> None:
        self.sessions = sessions
        self.id = session_id

    @abc.abstractmethod
    def register(self, key: str, value: Any) -> None: ...

    @abc.abstractmethod
    def value(self, key: str, default: Any = None) -> Any: ...

    @abc.abstractmethod
    def valid(self) -> bool: ...

    @abc.abstractmethod
    async def destroy(self) -> None: ...

    @abc.abstractmethod
    async def close(self) -> None:
        """Releases the session, persisting any registered values."""

    def transmit(self, response: "Response") -> None:
        """Sends the session id to the client as a cookie."""
        response.set_cookie(
            key=self.sessions.cookie_name,
            value=self.id,
            max_age=self.sessions.duration,
            path="/",
            secure=self.sessions.secure,
            httponly=True,
            samesite="lax",
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"


class Sessions(abc.ABC):
    def __init__(
        self,
        *,
        cookie_name: str = "session",
        duration: int = 86400,
        secure: bool = False,
    ) -> None:
        self.cookie_name = cookie_name
        self.duration = duration
        self.secure = secure

    @abc.abstractmethod
    async def create(self) -> Session:
        """Returns a new session."""

    @abc.abstractmethod
    async def open(self, session_id: str) -> Session | None:
        """Returns the session with the given id, or None if there is none."""

    async def locate(self, request: "Request") -> Session | None:
        """Returns the session referenced by the request's cookie, if any.

        The returned session may no longer be valid, callers must check.
        """
        if not (session_id := request.cookies.get(self.cookie_name)):
            return None
        return await self.open(session_id)


class MemorySession(Session):
    sessions: "MemorySessions"

    def __init__(
        self,
        sessions: "MemorySessions",
        session_id: str,
        expire_at: float,
    ) -> None:
        super().__init__(sessions, session_id)
        self.expire_at = expire_at
        self.values: dict[str, Any] = {}
        self.destroyed = False
        self.closed = False

    def register(self, key: str, value: Any) -> None:
        self.values[key] = value

    def value(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)

    def valid(self) -> bool:
        return not self.destroyed and self.sessions.now() < self.expire_at

    async def destroy(self) -> None:
        self.destroyed = True
        self.sessions.remove(self.id)

    async def close(self) -> None:
        self.closed = True


class MemorySessions(Sessions):
    def __init__(self, *, now_func: NowFunc = time.time, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.now = now_func
        self._sessions: dict[str, MemorySession] = {}

    async def create(self) -> MemorySession:
        self.purge_expired()
        session = MemorySession(
            self,
            shortuuid.uuid(),
            expire_at=self.now() + self.duration,
        )
        self._sessions[session.id] = session
        logger.debug("Created %r", session)
        return session

    async def open(self, session_id: str) -> MemorySession | None:
        return self._sessions.get(session_id)

    def remove(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def all(self) -> list[MemorySession]:  # noqa: A003
        return [s for s in self._sessions.values() if s.valid()]

    def purge_expired(self) -> int:
        expired = [k for k, s in self._sessions.items() if not s.valid()]
        for session_id in expired:
            del self._sessions[session_id]
        if expired:
            logger.info("MemorySessions.purge_expired count %s", len(expired))
        return len(expired)
