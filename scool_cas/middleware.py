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
Starlette Middleware
"""

import logging
import time
from collections.abc import Iterable

import shortuuid
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response
from starlette.types import ASGIApp

from . import errors, settings
from .login import CasLogin

logger = logging.getLogger(__name__)


class ContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if not (request_id := request.headers.get("x-request-id")):
            request_id = shortuuid.uuid()
        settings.CTX_REQUEST.set(
            settings.RequestContext(
                request_id=request_id,
                client_ip=request.client.host if request.client else None,
            )
        )
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class LogMiddleware(BaseHTTPMiddleware):
    async def log(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if query := request.url.query:
            path += f"?{query}"
        logger.info(
            "start: %s - %s %s",
            request.client.host if request.client else None,
            request.method,
            path,
        )
        tick_start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            tick_end = time.perf_counter()
            logger.info("end: %s [%r] - %s", 500, exc, round(tick_end - tick_start, 6))
            raise
        user = getattr(request.state, "user", None)
        logger.info(
            "end: %s - %s - %s",
            response.status_code,
            user.username if user else "-",
            round(time.perf_counter() - tick_start, 6),
        )
        return response

    # create an alias so we show a descriptive function name when logging
    dispatch = log


class CasLoginMiddleware(BaseHTTPMiddleware):
    """Requires a CAS login for every path except ``exclude_paths``."""

    def __init__(
        self,
        app: ASGIApp,
        login: CasLogin,
        exclude_paths: Iterable[str] = (),
    ) -> None:
        super().__init__(app)
        self.login = login
        self.exclude_paths = frozenset(exclude_paths)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.exclude_paths:
            return await call_next(request)
        try:
            return await self.login.filter(request, call_next)
        except errors.CasError as exc:
            logger.error("CAS login failed [%s]: %s", exc.status_code, exc)
            return PlainTextResponse(str(exc), status_code=exc.status_code)
