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
CAS Login

Decides for every request whether the user is already logged in, is
returning from the CAS login page with a ticket, or has to log in:

    ticket parameter    validate it, store the user in a new session and
                        redirect to the service URL without the ticket
    valid session       pass the user on to the next handler
    otherwise           redirect to the CAS login page

See https://apereo.github.io/cas/6.6.x/protocol/CAS-Protocol-Specification.html
"""

import logging
import urllib.parse

from starlette.middleware.base import RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from . import errors, templates
from .resolvers import ServiceURLResolver, UseRequest
from .schemas import UserIdentity, ValidationFailure
from .sessions import Session, Sessions
from .urls import ServiceURL
from .validation import TicketValidator

logger = logging.getLogger(__name__)

TICKET_PARAM = "ticket"
FRAGMENT_PARAM = "_"
USER_KEY = "user"


class CasLogin:
    def __init__(
        self,
        sso_url: str,
        sessions: Sessions,
        url: ServiceURLResolver | None = None,
        validator: TicketValidator | None = None,
    ) -> None:
        self.sso_url = sso_url.rstrip("/")
        self.sessions = sessions
        self.url = url or UseRequest()
        self.validator = validator or TicketValidator(self.sso_url)

    async def filter(  # noqa: A003
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if ticket := request.query_params.get(TICKET_PARAM):
            return await self.authenticate(request, ticket)

        session = await self.sessions.locate(request)
        if session is None:
            return self.login(request)

        user = self.session_user(session) if session.valid() else None
        if user is not None:
            return await self.proceed(request, call_next, session, user)

        try:
            return self.login(request)
        finally:
            await session.close()

    async def authenticate(self, request: Request, ticket: str) -> Response:
        """Validates the ticket, then redirects to self without it."""
        service = self.url.resolve(request).with_param(TICKET_PARAM, None)

        outcome = await self.validator.validate(ticket, service)
        if isinstance(outcome, ValidationFailure):
            logger.warning(
                "CAS ticket rejected [%s] for %s: %s",
                outcome.code,
                service,
                outcome.message,
            )
            raise errors.AuthenticationFailure(outcome.code, outcome.message)

        user = UserIdentity.from_outcome(outcome)
        session = await self.sessions.create()
        try:
            session.register(USER_KEY, user.as_session_value())
            target = service.with_param(FRAGMENT_PARAM, None).with_fragment(
                request.query_params.get(FRAGMENT_PARAM)
            )
            response = RedirectResponse(url=str(target), status_code=302)
            session.transmit(response)
        finally:
            await session.close()

        logger.info("CAS user [%s] logged in, %r", user.username, session)
        return response

    def session_user(self, session: Session) -> UserIdentity | None:
        """Returns the user stored in the session, None if anonymous."""
        if not (value := session.value(USER_KEY)):
            return None
        try:
            return UserIdentity.from_session_value(value)
        except ValueError as exc:
            logger.warning("Ignoring user stored in %r: %r", session, exc)
            return None

    async def proceed(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
        session: Session,
        user: UserIdentity,
    ) -> Response:
        try:
            request.state.user = user
            response = await call_next(request)
            session.transmit(response)
            return response
        finally:
            await session.close()

    def login_url(self, service: ServiceURL) -> str:
        encoded_service = urllib.parse.quote_plus(str(service))
        return f"{self.sso_url}/login?service={encoded_service}"

    def login(self, request: Request) -> Response:
        service = self.url.resolve(request)
        target = self.login_url(service)
        logger.debug("CAS login required, redirecting to %s", target)
        return templates.redirect_login(target)
