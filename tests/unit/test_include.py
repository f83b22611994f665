"""
Unit tests for Include directives.

Include is plain data: these tests need no database.
"""

import pytest

from datarepo.core.include import Include, LoadStrategy


class TestIncludeConstruction:
    """Tests for building and normalizing include paths."""

    def test_paths_keep_first_seen_order(self):
        """
        Test paths are stored in the order given.

        Arrange: Three distinct paths
        Act: Build an Include
        Assert: Order is preserved
        """
        # Act
        include = Include("books", "books.chapters", "publisher")

        # Assert
        assert include.paths == ("books", "books.chapters", "publisher")

    def test_duplicate_paths_are_dropped(self):
        include = Include("books", " books ", "books.chapters", "books")

        assert include.paths == ("books", "books.chapters")

    def test_default_strategy_is_select(self):
        assert Include("books").strategy is LoadStrategy.SELECT

    def test_strategy_accepts_plain_string(self):
        include = Include("books", strategy="joined")

        assert include.strategy is LoadStrategy.JOINED

    def test_of_builds_from_iterable(self):
        include = Include.of(path for path in ["author", "chapters"])

        assert include.paths == ("author", "chapters")

    @pytest.mark.parametrize("path", ["", "books.", ".books", "books..chapters", "1books", "bo oks"])
    def test_invalid_path_syntax_rejected(self, path):
        """
        Test malformed paths raise ValueError.

        Arrange: A malformed path
        Act: Build an Include
        Assert: ValueError is raised
        """
        with pytest.raises(ValueError, match="Invalid include path"):
            Include(path)

    def test_non_string_path_rejected(self):
        with pytest.raises(ValueError, match="must be a string"):
            Include(42)


class TestIncludeComposition:
    """Tests for composing include directives."""

    def test_add_concatenates_and_dedupes(self):
        # Act
        combined = Include("books") + Include("books", "books.chapters")

        # Assert
        assert combined.paths == ("books", "books.chapters")

    def test_add_keeps_left_strategy(self):
        combined = Include("books", strategy=LoadStrategy.JOINED) + Include("author")

        assert combined.strategy is LoadStrategy.JOINED

    def test_add_with_non_include_is_unsupported(self):
        with pytest.raises(TypeError):
            Include("books") + "author"

    def test_then_returns_new_value(self):
        """
        Test then() leaves the original Include untouched.

        Arrange: A base Include
        Act: Extend it with then()
        Assert: Base is unchanged, extension has both paths
        """
        # Arrange
        base = Include("books")

        # Act
        extended = base.then("books.chapters")

        # Assert
        assert base.paths == ("books",)
        assert extended.paths == ("books", "books.chapters")

    def test_joined_switches_strategy(self):
        include = Include("books").joined()

        assert include.strategy is LoadStrategy.JOINED
        assert include.paths == ("books",)

    def test_segments_split_paths(self):
        include = Include("books", "books.chapters")

        assert include.segments() == (("books",), ("books", "chapters"))


class TestIncludeValueSemantics:
    """Include behaves as an immutable value."""

    def test_equal_when_paths_and_strategy_match(self):
        assert Include("a", "b") == Include("a", "b")
        assert Include("a") != Include("a", strategy=LoadStrategy.JOINED)

    def test_hashable(self):
        assert len({Include("a"), Include("a"), Include("b")}) == 2

    def test_frozen(self):
        include = Include("books")

        with pytest.raises(AttributeError):
            include.paths = ("author",)

    def test_empty_include_is_falsy(self):
        assert not Include()
        assert len(Include()) == 0
        assert Include("books")

    def test_iterates_over_paths(self):
        assert list(Include("a", "a.b")) == ["a", "a.b"]
