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
FastAPI main entry point

This modules configures a FastAPI application protected by CAS login.
"""

import asyncio
import contextlib
import logging
from typing import Any

import fastapi
from starlette.middleware import Middleware

from . import __version__, middleware, routes, settings, validation
from .login import CasLogin
from .resolvers import resolver_from_settings
from .sessions import MemorySessions

logger = logging.getLogger(__name__)

logger.info(
    "Environment [%s], Is Production: %s", settings.api.env, settings.api.is_production
)


def create_login() -> CasLogin:
    sessions = MemorySessions(
        cookie_name=settings.session.cookie_name,
        duration=settings.session.duration,
        secure=settings.session.cookie_secure,
    )
    return CasLogin(
        settings.cas.sso_url,
        sessions,
        url=resolver_from_settings(settings.cas),
    )


@contextlib.asynccontextmanager
async def lifespan(_: fastapi.FastAPI) -> Any:
    logger.info("Running in loop [%r]", asyncio.get_running_loop())
    async with validation.http_client:
        yield


app = fastapi.FastAPI(
    title="SCOOL CAS",
    version=__version__,
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
    debug=settings.api.debug_app,
    middleware=[
        Middleware(middleware.ContextMiddleware),  # ty: ignore[invalid-argument-type]
        Middleware(middleware.LogMiddleware),  # ty: ignore[invalid-argument-type]
        Middleware(
            middleware.CasLoginMiddleware,  # ty: ignore[invalid-argument-type]
            login=create_login(),
            exclude_paths=["/lb-status"],
        ),
    ],
)

app.include_router(routes.router)
