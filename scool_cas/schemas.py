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
CAS schemas
"""

import dataclasses
from collections.abc import Mapping
from typing import Any, Self, TypeAlias

from pydantic import BaseModel, Field


@dataclasses.dataclass(frozen=True)
class ValidationSuccess:
    username: str
    attributes: Mapping[str, str] = dataclasses.field(default_factory=dict)


@dataclasses.dataclass(frozen=True)
class ValidationFailure:
    code: str
    message: str


ValidationOutcome: TypeAlias = ValidationSuccess | ValidationFailure


class UserIdentity(BaseModel):
    """An authenticated CAS user.

    In the session the user is stored as a single flat mapping of the
    ``username`` and the released CAS attributes, for example:

        {"username": "jdoe", "firstname": "John", "email": "jdoe@example.org"}
    """

    username: str
    attributes: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_outcome(cls, outcome: ValidationSuccess) -> Self:
        return cls(username=outcome.username, attributes=dict(outcome.attributes))

    @classmethod
    def from_session_value(cls, value: Mapping[str, Any]) -> Self:
        """Returns the user stored by ``as_session_value``.

        Raises a ``ValueError`` (pydantic's ``ValidationError``) if ``value``
        is not a mapping holding a ``username``.
        """
        if not isinstance(value, Mapping):
            raise ValueError("USER", value)
        attributes = {k: str(v) for k, v in value.items() if k != "username"}
        return cls.model_validate(
            {"username": value.get("username"), "attributes": attributes}
        )

    def as_session_value(self) -> dict[str, str]:
        # an attribute named "username" must not replace the CAS user
        return {**self.attributes, "username": self.username}
