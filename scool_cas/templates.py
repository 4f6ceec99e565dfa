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
Templating library for HTML Responses
"""

from starlette.responses import HTMLResponse


def redirect_login(target_url: str) -> HTMLResponse:
    """Returns a page that sends the browser to the CAS login ``target_url``.

    Browsers never send the URL fragment to the server, so the redirect
    is done in JavaScript which appends the fragment to the service URL
    as the ``_`` parameter. ``target_url`` ends with the encoded service
    URL, hence the second round of encoding. Without JavaScript the meta
    refresh still redirects, losing only the fragment.
    """
    body = f"""\
<!DOCTYPE html>
<html>
  <head>
    <title>Redirect</title>
    <meta http-equiv="refresh" content="1; URL={target_url}">
  </head>
  <body>
    <script type="text/javascript">
      var hash = document.location.hash.substring(1);
      if (hash) {{
        document.location.replace("{target_url}" + encodeURIComponent(
          (document.location.search ? "&_=" : "?_=") +
          encodeURIComponent(hash)
        ));
      }} else {{
        document.location.replace("{target_url}");
      }}
    </script>
  </body>
</html>
"""
    return HTMLResponse(content=body)
