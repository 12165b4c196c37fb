"""
Unit tests for the content router.
"""

import pytest

from tinyserve.content import FileRoute, Html, Raw, RawRoute, Routed, WILDCARD, file_routes
from tinyserve.http.router import (
    ExplicitRaw,
    FileMatch,
    HtmlMatch,
    NO_MATCH,
    NoMatch,
    RawMatch,
    Router,
    match,
)


class TestMatchUnroutedSpecs:
    """Raw and Html answer every path."""

    @pytest.mark.parametrize("path", ["/", "/any/path", "/a.html", ""])
    def test_raw_matches_everything(self, path):
        """Test Raw text is returned for any path."""
        assert match(Raw("hello"), path) == RawMatch("hello")

    @pytest.mark.parametrize("path", ["/", "/deep/nested/path"])
    def test_html_matches_everything(self, path):
        """Test Html markup is returned for any path."""
        assert match(Html("<h1>Hi</h1>"), path) == HtmlMatch("<h1>Hi</h1>")

    def test_unknown_spec(self):
        with pytest.raises(TypeError):
            match("not a spec", "/")


class TestMatchRouted:
    """Tests for route tables."""

    def test_exact_file_route(self):
        """Test an exact route yields the configured file."""
        spec = Routed((FileRoute("/", "index.html"),))

        assert match(spec, "/") == FileMatch("index.html")

    def test_exact_match_is_not_normalized(self):
        """Test trailing slashes and case are significant."""
        spec = Routed((FileRoute("/about.html", "about.html"),))

        assert match(spec, "/about.html/") is NO_MATCH
        assert match(spec, "/About.html") is NO_MATCH

    def test_no_match(self):
        spec = Routed((FileRoute("/a.html", "a.html"),))

        result = match(spec, "/b.html")

        assert isinstance(result, NoMatch)
        assert result == NO_MATCH

    def test_empty_table_matches_nothing(self):
        assert match(Routed(()), "/") is NO_MATCH

    def test_first_match_wins(self):
        """Test that the earliest matching entry answers."""
        spec = Routed((
            RawRoute("/", "first"),
            RawRoute("/", "second"),
            FileRoute("/", "index.html"),
        ))

        assert match(spec, "/") == ExplicitRaw("first")

    def test_raw_route_carries_type_and_status(self):
        spec = Routed((RawRoute("/teapot", "short and stout", "text/plain", 418),))

        assert match(spec, "/teapot") == ExplicitRaw(
            content="short and stout",
            content_type="text/plain",
            status=418,
        )

    def test_wildcard_file_uses_requested_path(self):
        """Test the wildcard serves the requested path relative to cwd."""
        spec = Routed((FileRoute(WILDCARD, WILDCARD),))

        assert match(spec, "/docs/guide.txt") == FileMatch("docs/guide.txt")
        assert match(spec, "/") == FileMatch("")

    def test_wildcard_strips_every_leading_slash(self):
        spec = Routed((FileRoute(WILDCARD, WILDCARD),))

        assert match(spec, "//etc/passwd") == FileMatch("etc/passwd")

    @pytest.mark.parametrize("path", [
        "/../secret.txt",
        "/docs/../../etc/passwd",
        "/..",
        "/a\x00.html",
        "/docs\\..\\secret.txt",
    ])
    def test_wildcard_refuses_paths_outside_cwd(self, path):
        """Test parent segments and NUL bytes never become file reads."""
        spec = Routed((FileRoute(WILDCARD, WILDCARD),))

        assert match(spec, path) is NO_MATCH

    def test_wildcard_allows_dots_inside_names(self):
        spec = Routed((FileRoute(WILDCARD, WILDCARD),))

        assert match(spec, "/a..b/c.html") == FileMatch("a..b/c.html")

    def test_parent_segment_reaches_exact_route(self):
        spec = Routed((RawRoute("/a/../b", "reached"), FileRoute(WILDCARD, WILDCARD)))

        assert match(spec, "/a/../b") == ExplicitRaw("reached")

    def test_raw_ignores_parent_segments(self):
        assert match(Raw("hello"), "/a/../b") == RawMatch("hello")

    def test_wildcard_ignores_declared_path(self):
        spec = Routed((FileRoute(WILDCARD, "ignored.html"),))

        assert match(spec, "/a.html") == FileMatch("a.html")

    def test_specific_route_before_wildcard(self):
        spec = Routed((
            FileRoute("/", "index.html"),
            FileRoute(WILDCARD, WILDCARD),
        ))

        assert match(spec, "/") == FileMatch("index.html")
        assert match(spec, "/other.html") == FileMatch("other.html")

    def test_wildcard_shadows_later_routes(self):
        """Test a wildcard declared first answers every path."""
        spec = Routed((
            FileRoute(WILDCARD, WILDCARD),
            RawRoute("/health", "ok"),
        ))

        assert match(spec, "/health") == FileMatch("health")

    def test_raw_wildcard(self):
        spec = Routed((RawRoute("/", "home"), RawRoute(WILDCARD, "fallback", status=404)))

        assert match(spec, "/") == ExplicitRaw("home")
        assert match(spec, "/x") == ExplicitRaw("fallback", status=404)

    def test_file_routes_from_command_line(self):
        spec = file_routes(["chapter1.html", "chapter2.html"])

        assert match(spec, "/chapter1.html") == FileMatch("chapter1.html")
        assert match(spec, "/chapter2.html") == FileMatch("chapter2.html")
        assert match(spec, "/") is NO_MATCH

    def test_match_is_pure(self):
        """Test repeated matching returns equal results."""
        spec = Routed((FileRoute("/", "index.html"),))

        assert match(spec, "/") == match(spec, "/")


class TestRouter:

    def test_match_delegates(self):
        router = Router(Routed((FileRoute("/", "index.html"),)))

        assert router.match("/") == FileMatch("index.html")
        assert router.match("/nope") is NO_MATCH

    def test_spec_property(self):
        spec = Raw("hi")
        assert Router(spec).spec is spec

    def test_describe_raw_and_html(self):
        assert Router(Raw("x")).describe() == ["* -> raw text"]
        assert Router(Html("x")).describe() == ["* -> html"]

    def test_describe_routes(self):
        router = Router(Routed((
            FileRoute("/", "index.html"),
            RawRoute("/health", "ok"),
            RawRoute("/gone", "bye", status=410),
            FileRoute(WILDCARD, WILDCARD),
        )))

        assert router.describe() == [
            "/ -> file index.html",
            "/health -> raw (200)",
            "/gone -> raw (410)",
            "* -> file <requested path>",
        ]
