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
Service URL resolution

The service URL identifies this application to the CAS server. Behind a
reverse proxy the URL seen by the application differs from the one the
browser used, so the resolver is configurable:

    UseRequest      the request URL as received (default)
    BehindProxy     rebuilt from the ``X-Forwarded-*`` headers
    ExplicitURL     a fixed URL, regardless of the request

Resolvers must be pure. ``CasLogin`` resolves the URL once for the login
redirect and again when the ticket comes back, and CAS rejects the ticket
if the two differ.
"""

import dataclasses
import logging
import urllib.parse
from typing import TYPE_CHECKING, Protocol, Self

from .urls import ServiceURL

if TYPE_CHECKING:
    from starlette.requests import Request

    from .settings import CasSettings

logger = logging.getLogger(__name__)


class ServiceURLResolver(Protocol):
    def resolve(self, request: "Request") -> ServiceURL: ...


@dataclasses.dataclass(frozen=True)
class Prefix:
    """Prepends ``base`` to the request path."""

    base: str

    def apply(self, path: str) -> str:
        return self.base.rstrip("/") + path


@dataclasses.dataclass(frozen=True)
class Strip:
    """Removes a leading ``base`` segment from the request path."""

    base: str

    def apply(self, path: str) -> str:
        base = self.base.rstrip("/")
        if base and (path == base or path.startswith(f"{base}/")):
            path = path[len(base) :]
        return path or "/"


PathRewrite = Prefix | Strip


@dataclasses.dataclass(frozen=True)
class UseRequest:
    def resolve(self, request: "Request") -> ServiceURL:
        return ServiceURL.parse(str(request.url))


@dataclasses.dataclass(frozen=True)
class ExplicitURL:
    url: ServiceURL

    @classmethod
    def of(cls, url: str) -> Self:
        return cls(ServiceURL.parse(url))

    def resolve(self, request: "Request") -> ServiceURL:  # noqa: ARG002
        return self.url


@dataclasses.dataclass(frozen=True)
class BehindProxy:
    """Rewrites the request URL when running behind a reverse proxy.

    The ``X-Forwarded-Host`` header triggers the rewrite; without it the
    request URL is used as is. The scheme comes from ``protocol`` if set,
    else ``X-Forwarded-Proto`` (defaulting to ``https``), and the port from
    ``X-Forwarded-Port``.
    """

    protocol: str | None = None
    rewrite: PathRewrite | None = None

    def using(self, protocol: str) -> Self:
        return dataclasses.replace(self, protocol=protocol)

    def prefixed(self, base: str) -> Self:
        return dataclasses.replace(self, rewrite=Prefix(base))

    def stripping(self, base: str) -> Self:
        return dataclasses.replace(self, rewrite=Strip(base))

    def resolve(self, request: "Request") -> ServiceURL:
        url = ServiceURL.parse(str(request.url))
        if not (forwarded := request.headers.get("x-forwarded-host")):
            return url

        # proxies may append to the header, the client facing host is first
        forwarded = forwarded.split(",")[0].strip()
        host_parts = urllib.parse.urlsplit(f"//{forwarded}")
        host = host_parts.hostname or forwarded
        try:
            host_port = host_parts.port
        except ValueError:
            host_port = None

        port = host_port
        if forwarded_port := request.headers.get("x-forwarded-port"):
            port = int(forwarded_port) if forwarded_port.isdigit() else None

        scheme = self.protocol
        if not scheme:
            scheme = request.headers.get("x-forwarded-proto", "https")
            scheme = scheme.split(",")[0].strip() or "https"
        path = self.rewrite.apply(url.path) if self.rewrite else url.path
        return dataclasses.replace(
            url,
            scheme=scheme,
            host=host,
            port=port,
            path=path,
        )


def resolver_from_settings(cas_settings: "CasSettings") -> ServiceURLResolver:
    if cas_settings.service_url:
        logger.info("Using explicit service URL [%s]", cas_settings.service_url)
        return ExplicitURL.of(cas_settings.service_url)

    if not cas_settings.behind_proxy:
        return UseRequest()

    resolver = BehindProxy(protocol=cas_settings.proxy_protocol)
    if cas_settings.proxy_prefix:
        resolver = resolver.prefixed(cas_settings.proxy_prefix)
    elif cas_settings.proxy_strip:
        resolver = resolver.stripping(cas_settings.proxy_strip)
    logger.info("Using service URL from proxy headers: %r", resolver)
    return resolver
