"""Tests for object path resolution."""

from notestore.storage.paths import resolve_path


class TestResolvePath:
    def test_prefix_and_path_joined_with_single_slash(self) -> None:
        assert resolve_path("notea", "notes/a") == "notea/notes/a"

    def test_surrounding_slashes_collapsed(self) -> None:
        assert resolve_path("notea/", "/notes/a/") == "notea/notes/a"

    def test_empty_prefix_leaves_path(self) -> None:
        assert resolve_path("", "notes/a") == "notes/a"

    def test_multiple_segments(self) -> None:
        assert resolve_path("ns", "notes", "a", "meta") == "ns/notes/a/meta"

    def test_empty_segments_dropped(self) -> None:
        assert resolve_path("ns", "", "notes/a") == "ns/notes/a"

    def test_deterministic(self) -> None:
        """Same prefix and path always give the same key."""
        assert resolve_path("ns", "notes/a") == resolve_path("ns", "notes/a")
