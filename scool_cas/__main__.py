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
Main entrypoint

Launches the application using the ``SCOOL_`` settings. Set
``SCOOL_DEVMODE=true`` for a single reloading worker on localhost with a
self-signed certificate:

    python -m scool_cas
"""

from . import server

if __name__ == "__main__":
    server.start()
