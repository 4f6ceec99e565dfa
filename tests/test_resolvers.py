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

import unittest

from scool_cas import resolvers
from scool_cas.settings import CasSettings
from scool_cas.urls import ServiceURL

from . import make_request

FORWARDED = {"X-Forwarded-Host": "pub.example.com"}


class UseRequestTestCase(unittest.TestCase):
    def test_resolves_request_url(self):
        request = make_request("http://localhost:8000/x?a=1")
        rv = resolvers.UseRequest().resolve(request)
        self.assertEqual(str(rv), "http://localhost:8000/x?a=1")

    def test_ignores_forwarded_headers(self):
        request = make_request("http://localhost/x", headers=FORWARDED)
        rv = resolvers.UseRequest().resolve(request)
        self.assertEqual(str(rv), "http://localhost/x")


class ExplicitURLTestCase(unittest.TestCase):
    def test_ignores_request(self):
        resolver = resolvers.ExplicitURL.of("https://example.com/")
        for request in (
            make_request("http://localhost/"),
            make_request("http://localhost/x?ticket=ST-1", headers=FORWARDED),
        ):
            self.assertEqual(str(resolver.resolve(request)), "https://example.com/")

    def test_accepts_service_url(self):
        url = ServiceURL.parse("https://example.com/app")
        self.assertIs(resolvers.ExplicitURL(url).resolve(make_request()), url)


class BehindProxyTestCase(unittest.TestCase):
    def test_without_forwarded_host_uses_request(self):
        request = make_request("http://localhost/x?a=1")
        rv = resolvers.BehindProxy().resolve(request)
        self.assertEqual(str(rv), "http://localhost/x?a=1")

    def test_forwarded_host_defaults_to_https(self):
        request = make_request("http://localhost:8000/x?a=1", headers=FORWARDED)
        rv = resolvers.BehindProxy().resolve(request)
        self.assertEqual(str(rv), "https://pub.example.com/x?a=1")

    def test_forwarded_proto_and_port(self):
        headers = {
            **FORWARDED,
            "X-Forwarded-Proto": "http",
            "X-Forwarded-Port": "8080",
        }
        rv = resolvers.BehindProxy().resolve(make_request(headers=headers))
        self.assertEqual(str(rv), "http://pub.example.com:8080/")

    def test_forwarded_host_with_port(self):
        headers = {"X-Forwarded-Host": "pub.example.com:8443"}
        rv = resolvers.BehindProxy().resolve(make_request(headers=headers))
        self.assertEqual(rv.host, "pub.example.com")
        self.assertEqual(rv.port, 8443)

    def test_first_forwarded_host_wins(self):
        headers = {"X-Forwarded-Host": "pub.example.com, internal.lan"}
        rv = resolvers.BehindProxy().resolve(make_request(headers=headers))
        self.assertEqual(rv.host, "pub.example.com")

    def test_using_overrides_forwarded_proto(self):
        headers = {**FORWARDED, "X-Forwarded-Proto": "https"}
        resolver = resolvers.BehindProxy().using("http")
        rv = resolver.resolve(make_request(headers=headers))
        self.assertEqual(rv.scheme, "http")

    def test_prefixed(self):
        resolver = resolvers.BehindProxy().prefixed("/app")
        rv = resolver.resolve(make_request("http://localhost/x", headers=FORWARDED))
        self.assertEqual(rv.path, "/app/x")

    def test_prefixed_ignores_trailing_slash(self):
        resolver = resolvers.BehindProxy().prefixed("/app/")
        rv = resolver.resolve(make_request("http://localhost/x", headers=FORWARDED))
        self.assertEqual(rv.path, "/app/x")

    def test_stripping(self):
        resolver = resolvers.BehindProxy().stripping("/app")
        rv = resolver.resolve(make_request("http://localhost/app/x", headers=FORWARDED))
        self.assertEqual(rv.path, "/x")

    def test_stripping_to_empty_path(self):
        resolver = resolvers.BehindProxy().stripping("/app")
        rv = resolver.resolve(make_request("http://localhost/app", headers=FORWARDED))
        self.assertEqual(rv.path, "/")

    def test_stripping_other_path_unchanged(self):
        resolver = resolvers.BehindProxy().stripping("/app")
        rv = resolver.resolve(make_request("http://localhost/x", headers=FORWARDED))
        self.assertEqual(rv.path, "/x")

    def test_stripping_matches_whole_segments(self):
        resolver = resolvers.BehindProxy().stripping("/app")
        rv = resolver.resolve(
            make_request("http://localhost/apple/x", headers=FORWARDED)
        )
        self.assertEqual(rv.path, "/apple/x")
        self.assertEqual(resolvers.Strip("/app/").apply("/app/"), "/")

    def test_rewrite_only_behind_proxy(self):
        resolver = resolvers.BehindProxy().prefixed("/app")
        rv = resolver.resolve(make_request("http://localhost/x"))
        self.assertEqual(rv.path, "/x")

    def test_builders_return_copies(self):
        resolver = resolvers.BehindProxy()
        resolver.using("http").prefixed("/app")
        self.assertIsNone(resolver.protocol)
        self.assertIsNone(resolver.rewrite)

    def test_resolve_is_stable(self):
        resolver = resolvers.BehindProxy().stripping("/app")
        request = make_request("http://localhost/app/x?b=2&a=1", headers=FORWARDED)
        self.assertEqual(str(resolver.resolve(request)), str(resolver.resolve(request)))


class ResolverFromSettingsTestCase(unittest.TestCase):
    def test_default_uses_request(self):
        rv = resolvers.resolver_from_settings(CasSettings())
        self.assertIsInstance(rv, resolvers.UseRequest)

    def test_service_url(self):
        cfg = CasSettings(service_url="https://example.com/", behind_proxy=True)
        rv = resolvers.resolver_from_settings(cfg)
        self.assertEqual(rv, resolvers.ExplicitURL.of("https://example.com/"))

    def test_behind_proxy_prefixed(self):
        cfg = CasSettings(
            behind_proxy=True, proxy_protocol="https", proxy_prefix="/app"
        )
        rv = resolvers.resolver_from_settings(cfg)
        expected = resolvers.BehindProxy(
            protocol="https", rewrite=resolvers.Prefix("/app")
        )
        self.assertEqual(rv, expected)

    def test_behind_proxy_stripping(self):
        cfg = CasSettings(behind_proxy=True, proxy_strip="/app")
        rv = resolvers.resolver_from_settings(cfg)
        self.assertEqual(rv, resolvers.BehindProxy(rewrite=resolvers.Strip("/app")))
