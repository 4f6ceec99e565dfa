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
Application Settings and Configuration

Application-wide configuration settings that are read in from the Environment.
"""

import contextvars
import dataclasses
import logging
from pathlib import Path
from typing import Any, Self

import pydantic_settings
import shortuuid
from pydantic import field_validator, model_validator

BASE_PATH = Path(__file__).parent.parent

VALID_ENVIRONMENTS = ("local", "sandbox", "dev", "prod")


@dataclasses.dataclass(frozen=True)
class RequestContext:
    """Context information to pass from middleware to other services."""

    request_id: str
    client_ip: str | None


CTX_REQUEST: contextvars.ContextVar[RequestContext] = contextvars.ContextVar(
    "RequestContext",
    default=RequestContext(  # noqa: B039
        request_id=shortuuid.uuid(),
        client_ip=None,
    ),
)


class SharedSettings(pydantic_settings.BaseSettings):
    model_config = {"env_file": BASE_PATH / ".env", "frozen": True, "extra": "ignore"}


class LogSettings(SharedSettings, env_prefix="LOG_"):
    level_root: str = "WARNING"
    level_app: str = "INFO"
    level_uvicorn: str = "INFO"


class CasSettings(SharedSettings, env_prefix="CAS_"):
    """CAS server and service URL settings.

    ``service_url`` pins the service URL. Otherwise, with ``behind_proxy``
    set, the URL is rebuilt from the ``X-Forwarded-*`` headers, optionally
    forcing ``proxy_protocol`` and rewriting the path with one of
    ``proxy_prefix`` or ``proxy_strip``.
    """

    sso_url: str = "https://cas.fresnostate.edu"
    service_url: str | None = None
    behind_proxy: bool = False
    proxy_protocol: str | None = None
    proxy_prefix: str | None = None
    proxy_strip: str | None = None
    validate_tls: bool = True

    @field_validator("proxy_protocol")
    def _verify_protocol(cls, v: str | None) -> str | None:
        if v is not None and v not in ("http", "https"):
            msg = f"Invalid proxy_protocol [{v}], must be one of: http https"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def _verify_path_rewrite(self) -> Self:
        if self.proxy_prefix and self.proxy_strip:
            msg = "Only one of CAS_PROXY_PREFIX and CAS_PROXY_STRIP may be set"
            raise ValueError(msg)
        return self


class SessionSettings(SharedSettings, env_prefix="SESSION_"):
    cookie_name: str = "session"
    duration: int = 86400
    cookie_secure: bool = True


class APISettings(SharedSettings, env_prefix="SCOOL_"):
    """Main app settings.

    The attributes are populated from OS environment variables that are
    prefixed by ``SCOOL_``.
    """

    env: str = "local"
    debug_app: bool = False
    devmode: bool = False
    port: int = 8443
    forwarded_allow_ips: str = "127.0.0.1"

    @field_validator("env")
    def _verify_environment(cls, v: str) -> str:
        """Raises a ``ValueError`` if the provided environment is not valid."""
        if v not in VALID_ENVIRONMENTS:
            msg = f"Invalid env [{v}], must be one of: {' '.join(VALID_ENVIRONMENTS)}"
            raise ValueError(msg)
        return v

    @property
    def is_production(self) -> bool:
        """Returns True if the environment is set to Production mode."""
        return self.env == "prod"

    @property
    def is_local(self) -> bool:
        """Returns True if the environment is set to Local model."""
        return self.env == "local"


api = APISettings()
cas = CasSettings()
session = SessionSettings()
log = LogSettings()

_old_log_factory = logging.getLogRecordFactory()


def _new_log_factory(*args: Any, **kwargs: Any) -> logging.LogRecord:
    record = _old_log_factory(*args, **kwargs)
    record.request_id = CTX_REQUEST.get().request_id
    return record


logging.setLogRecordFactory(_new_log_factory)
logging.basicConfig(
    format="%(asctime)s[%(levelname)s][%(request_id)s]%(name)s: %(message)s",
    level=log.level_root,
)
logging.getLogger("uvicorn").setLevel(log.level_uvicorn)
logging.getLogger(__package__).setLevel(log.level_app)

if api.is_production and not session.cookie_secure:
    logging.getLogger(__package__).warning("Session cookies are not marked secure")
