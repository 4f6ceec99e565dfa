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
API Endpoints
"""

import logging
import sys

from fastapi import APIRouter, HTTPException, Request, status
from fastapi import __version__ as fastapi_version

from . import __version__ as app_version
from . import settings
from .schemas import UserIdentity

logger = logging.getLogger(__name__)

router = APIRouter()

app_info = {
    "app_version": app_version,
    "framework_version": fastapi_version,
    "lang_version": sys.version,
    "environment": settings.api.env,
}


def current_user(request: Request) -> UserIdentity:
    """Returns the user ``CasLoginMiddleware`` attached to the request."""
    if (user := getattr(request.state, "user", None)) is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return user


@router.get("/", include_in_schema=False)
async def index(request: Request) -> dict[str, str]:
    user = current_user(request)
    return {"message": f"Hello {user.attributes.get('cn', user.username)}"}


@router.get("/userinfo")
async def user_info(request: Request) -> UserIdentity:
    return current_user(request)


@router.get("/lb-status", include_in_schema=False)
async def health_check() -> dict[str, str]:
    """Provides a health check endpoint for the Load Balancer."""
    return app_info
