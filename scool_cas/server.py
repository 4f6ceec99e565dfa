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
ASGI Server entrypoint
"""

import logging
import os

import trustme
import uvicorn

from . import settings

logger = logging.getLogger(__name__)


def start() -> None:
    devmode = settings.api.devmode
    logger.info("Starting server in [%s] mode", "dev" if devmode else "prod")

    app = f"{__package__}.app:app"
    host = "127.0.0.1" if devmode else "0.0.0.0"  # noqa:S104
    port = settings.api.port
    reload = devmode
    workers = 1 if devmode else calculate_workers()
    log_level = settings.log.level_uvicorn.lower()
    access_log = False
    proxy_headers = True
    # the X-Forwarded-* headers drive the service URL, only trust known proxies
    forwarded_allow_ips = settings.api.forwarded_allow_ips
    server_header = False

    logger.info(locals())

    if not devmode:
        uvicorn.run(
            app=app,
            host=host,
            port=port,
            workers=workers,
            log_level=log_level,
            access_log=access_log,
            proxy_headers=proxy_headers,
            forwarded_allow_ips=forwarded_allow_ips,
            server_header=server_header,
        )
        return

    ssl_ca = trustme.CA()
    ssl_cert = ssl_ca.issue_cert("localhost", "127.0.0.1")

    with (
        ssl_cert.cert_chain_pems[0].tempfile() as ssl_certfile,
        ssl_cert.private_key_pem.tempfile() as ssl_keyfile,
    ):
        uvicorn.run(
            app=app,
            host=host,
            port=port,
            reload=reload,
            workers=workers,
            log_level=log_level,
            access_log=access_log,
            proxy_headers=proxy_headers,
            forwarded_allow_ips=forwarded_allow_ips,
            server_header=server_header,
            ssl_keyfile=ssl_keyfile,
            ssl_certfile=ssl_certfile,
        )


def calculate_workers() -> int:
    """Returns a worker count between 2 and 4 based on available CPUs.

    Sessions are kept in memory per process, so a deployment with more
    than one worker needs sticky sessions at the load balancer.
    """
    if not (cpu_count := os.cpu_count()):
        cpu_count = 1
    return max(2, min(cpu_count, 4))
