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
Central Authentication Service (CAS) ticket validation

Implements the service side of CAS protocol 2.0 ``serviceValidate``:

    GET {sso}/serviceValidate?ticket={ticket}&service={service}

and parsing of the ``cas:serviceResponse`` document it returns.
"""

import logging
import xml.etree.ElementTree as ET

import httpx

from . import errors, settings
from .schemas import ValidationFailure, ValidationOutcome, ValidationSuccess
from .urls import ServiceURL

logger = logging.getLogger(__name__)

CAS_NS = "http://www.yale.edu/tp/cas"


def create_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(verify=settings.cas.validate_tls)


http_client = create_http_client()


def _tag(name: str) -> str:
    return f"{{{CAS_NS}}}{name}"


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _find(root: ET.Element, name: str) -> ET.Element | None:
    """Returns the first ``cas:<name>`` element in document order."""
    return next(root.iter(_tag(name)), None)


class TicketValidator:
    def __init__(
        self,
        sso_url: str,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.sso_url = sso_url.rstrip("/")
        self._http_client = http_client

    @property
    def http_client(self) -> httpx.AsyncClient:
        # defaults to the module client closed by the app lifespan
        return self._http_client or http_client

    @property
    def validate_url(self) -> str:
        return f"{self.sso_url}/serviceValidate"

    async def validate(self, ticket: str, service: ServiceURL) -> ValidationOutcome:
        """Validates ``ticket`` as issued for ``service``.

        Raises a ``TransportError`` if the CAS server does not respond with
        a 200 and the parse errors documented in ``parse`` otherwise.
        """
        params = {"ticket": ticket, "service": str(service)}
        logger.debug("CAS validating ticket for service [%s]", params["service"])
        try:
            response = await self.http_client.get(self.validate_url, params=params)
        except httpx.HTTPError as exc:
            logger.error("CAS validate request failed: %r", exc)
            raise errors.TransportError(502, repr(exc)) from exc

        if response.status_code != httpx.codes.OK:
            logger.error(
                "CAS validate returned [%s]: %s",
                response.status_code,
                response.reason_phrase,
            )
            raise errors.TransportError(response.status_code, response.reason_phrase)

        cas_response = response.text
        logger.debug("CAS response:\n%s", cas_response)
        return self.parse(cas_response)

    def parse(self, cas_response: str) -> ValidationOutcome:
        """Returns the outcome described by a ``cas:serviceResponse``.

        Raises a ``MalformedResponse`` if the document is not well-formed
        and an ``UnexpectedResponse`` if it reports neither success nor
        failure.
        """
        if not cas_response.strip():
            raise errors.UnexpectedResponse(cas_response)

        try:
            root = ET.fromstring(cas_response)  # noqa: S314
        except ET.ParseError as exc:
            logger.error("CAS response cannot be parsed: %r", exc)
            raise errors.MalformedResponse(repr(exc)) from exc

        if (failure := _find(root, "authenticationFailure")) is not None:
            return ValidationFailure(
                code=failure.attrib.get("code", "UNKNOWN"),
                message="".join(failure.itertext()).strip(),
            )

        success = _find(root, "authenticationSuccess")
        user = _find(success, "user") if success is not None else None
        if user is None:
            raise errors.UnexpectedResponse(cas_response)

        attributes = {}
        if (attrs := _find(success, "attributes")) is not None:
            for child in attrs:
                attributes[_local_name(child.tag)] = child.text or ""

        return ValidationSuccess(
            username=(user.text or "").strip(),
            attributes=attributes,
        )
