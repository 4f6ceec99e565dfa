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
Service URLs

A ``ServiceURL`` is echoed to the CAS server on login and again on ticket
validation. CAS compares both strings byte for byte, so the query string
is kept exactly as the client sent it. Only parameters set through
``with_param`` are encoded here.
"""

import dataclasses
import urllib.parse
from typing import Self


def _param_name(pair: str) -> str:
    return urllib.parse.unquote_plus(pair.split("=", 1)[0])


@dataclasses.dataclass(frozen=True)
class ServiceURL:
    scheme: str
    host: str
    port: int | None = None
    path: str = "/"
    query: str = ""
    fragment: str | None = None

    @classmethod
    def parse(cls, url: str) -> Self:
        """Returns a ``ServiceURL`` from an absolute URL string.

        Raises a ``ValueError`` if the URL has no scheme or host.
        """
        parts = urllib.parse.urlsplit(url)
        if not parts.scheme or not parts.hostname:
            raise ValueError("URL", url)
        return cls(
            scheme=parts.scheme,
            host=parts.hostname,
            port=parts.port,
            path=parts.path or "/",
            query=parts.query,
            fragment=parts.fragment or None,
        )

    @property
    def netloc(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        if self.port is None:
            return host
        return f"{host}:{self.port}"

    @property
    def params(self) -> tuple[tuple[str, str], ...]:
        return tuple(urllib.parse.parse_qsl(self.query, keep_blank_values=True))

    def param(self, name: str, default: str | None = None) -> str | None:
        for key, value in self.params:
            if key == name:
                return value
        return default

    def with_param(self, name: str, value: str | None) -> Self:
        """Returns a copy with the parameter set, or removed if ``value`` is None.

        An existing parameter keeps its position in the query string. All
        other pairs are left untouched, encoding included.
        """
        pairs = [p for p in self.query.split("&") if p]
        if value is None:
            kept = [p for p in pairs if _param_name(p) != name]
            return dataclasses.replace(self, query="&".join(kept))

        encoded = urllib.parse.urlencode({name: value})
        updated: list[str] = []
        replaced = False
        for pair in pairs:
            if _param_name(pair) != name:
                updated.append(pair)
            elif not replaced:
                updated.append(encoded)
                replaced = True
        if not replaced:
            updated.append(encoded)
        return dataclasses.replace(self, query="&".join(updated))

    def with_fragment(self, fragment: str | None) -> Self:
        return dataclasses.replace(self, fragment=fragment or None)

    def with_scheme(self, scheme: str) -> Self:
        return dataclasses.replace(self, scheme=scheme)

    def with_host(self, host: str) -> Self:
        return dataclasses.replace(self, host=host)

    def with_port(self, port: int | None) -> Self:
        return dataclasses.replace(self, port=port)

    def with_path(self, path: str) -> Self:
        return dataclasses.replace(self, path=path)

    def __str__(self) -> str:
        url = f"{self.scheme}://{self.netloc}{self.path}"
        if self.query:
            url += f"?{self.query}"
        if self.fragment is not None:
            url += f"#{self.fragment}"
        return url
