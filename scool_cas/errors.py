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
CAS error types

Every error raised while handling a ticket is fatal for the request. The
``CasLoginMiddleware`` renders them using ``status_code`` and the message.
"""


class CasError(Exception):
    status_code = 500
    error_code = "CAS"

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def __str__(self) -> str:
        return self.message


class TransportError(CasError):
    """The CAS server did not answer ``serviceValidate`` with a 200."""

    error_code = "TRANSPORT"

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message, status_code=status_code)


class MalformedResponse(CasError):
    error_code = "FORMAT"

    def __init__(self, cause: str = "") -> None:
        super().__init__("FORMAT: Validation cannot be parsed")
        self.cause = cause


class AuthenticationFailure(CasError):
    """The CAS server rejected the ticket."""

    def __init__(self, code: str, reason: str) -> None:
        super().__init__(f"{code}: {reason}")
        self.error_code = code
        self.reason = reason


class UnexpectedResponse(CasError):
    error_code = "UNEXPECTED"

    def __init__(self, raw: str) -> None:
        super().__init__(f"UNEXPECTED: {raw}")
        self.raw = raw
