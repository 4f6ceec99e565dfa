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

import pathlib
import urllib.parse
from collections.abc import Callable, Mapping

import httpx
from starlette.requests import Request

from scool_cas.validation import TicketValidator

TEST_DIR = pathlib.Path(__file__).parent
TEST_DATA_DIR = TEST_DIR / "data"

SSO = "https://sso.example.com"
TICKET = "ST-1856339-aA5Yuvrxzpv8Tau1cYQ7"


def load_text_file(path: str, encoding: str = "utf-8") -> str:
    return (TEST_DATA_DIR / path).read_text(encoding=encoding)


def make_request(
    url: str = "http://localhost/",
    headers: Mapping[str, str] | None = None,
) -> Request:
    """Returns a GET ``Request`` for ``url`` as an ASGI server would build it."""
    parts = urllib.parse.urlsplit(url)
    raw_headers = [(b"host", parts.netloc.encode("latin-1"))]
    for name, value in (headers or {}).items():
        raw_headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))
    scope = {
        "type": "http",
        "http_version": "1.1",
        "method": "GET",
        "scheme": parts.scheme,
        "server": (parts.hostname, parts.port or 80),
        "client": ("127.0.0.1", 50000),
        "root_path": "",
        "path": parts.path or "/",
        "raw_path": (parts.path or "/").encode("latin-1"),
        "query_string": parts.query.encode("latin-1"),
        "headers": raw_headers,
    }
    return Request(scope)


def cas_server(
    body: str,
    status_code: int = 200,
    requests: list[httpx.Request] | None = None,
) -> Callable[[httpx.Request], httpx.Response]:
    """Returns a ``httpx.MockTransport`` handler answering every request."""

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return httpx.Response(
            status_code,
            text=body,
            headers={"content-type": "text/xml;charset=UTF-8"},
        )

    return handler


def cas_validator(
    body: str,
    status_code: int = 200,
    requests: list[httpx.Request] | None = None,
) -> TicketValidator:
    transport = httpx.MockTransport(cas_server(body, status_code, requests))
    return TicketValidator(SSO, http_client=httpx.AsyncClient(transport=transport))
