"""Tests for resource URI parsing and formatting."""

import pytest

from syncato.storage.uri import ResourceURI


class TestResourceURIParse:
    """Tests for ResourceURI.parse."""

    def test_scheme_and_path(self):
        """Everything after scheme:// is the provider path."""
        uri = ResourceURI.parse("local://photos/beach.png")
        assert uri.scheme == "local"
        assert uri.path == "photos/beach.png"
        assert uri.name == "beach.png"

    def test_leading_slash_kept(self):
        uri = ResourceURI.parse("local:///photos/beach.png")
        assert uri.path == "/photos/beach.png"

    def test_scheme_is_lowercased(self):
        assert ResourceURI.parse("MEM://a.txt").scheme == "mem"

    def test_percent_decoding(self):
        assert ResourceURI.parse("local://my%20docs/a%23b.txt").path == "my docs/a#b.txt"

    def test_query_and_fragment_split_off(self):
        uri = ResourceURI.parse("local://a/b.txt?rev=3#top")
        assert uri.path == "a/b.txt"
        assert uri.query == "rev=3"
        assert uri.fragment == "top"

    def test_root_uri(self):
        uri = ResourceURI.parse("local://")
        assert uri.scheme == "local"
        assert uri.path == ""
        assert uri.name == ""

    @pytest.mark.parametrize("raw", ["", "photos/beach.png", "://missing-scheme"])
    def test_missing_scheme_rejected(self, raw):
        with pytest.raises(ValueError):
            ResourceURI.parse(raw)

    def test_encoded_nul_rejected(self):
        with pytest.raises(ValueError, match="NUL"):
            ResourceURI.parse("local://a%00b.txt")

    def test_non_string_rejected(self):
        with pytest.raises(ValueError, match="must be a string"):
            ResourceURI.parse(None)  # type: ignore[arg-type]


class TestResourceURIFormat:
    """Tests for canonical formatting and derived URIs."""

    def test_str_round_trips(self):
        for raw in ("local://photos/beach.png", "mem://my%20docs/a%3Fb.txt", "local://a?x=1#f"):
            uri = ResourceURI.parse(raw)
            assert ResourceURI.parse(str(uri)) == uri

    def test_reserved_characters_quoted(self):
        uri = ResourceURI(scheme="local", path="a?b#c d")
        assert str(uri) == "local://a%3Fb%23c%20d"

    def test_without_query(self):
        uri = ResourceURI.parse("local://a.txt?x=1#frag").without_query()
        assert str(uri) == "local://a.txt"

    def test_child(self):
        """Child URIs join with '/' and drop the query."""
        parent = ResourceURI.parse("local://photos?x=1")
        assert str(parent.child("beach.png")) == "local://photos/beach.png"

    def test_child_of_root(self):
        assert str(ResourceURI.parse("mem://").child("a.txt")) == "mem://a.txt"
