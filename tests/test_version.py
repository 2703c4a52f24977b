"""Test version import works correctly.

This test ensures that the package version is importable and non-empty.
"""

from vidshelf import __version__


def test_version() -> None:
    """Test that version is a string and non-empty."""
    assert isinstance(__version__, str)
    assert len(__version__) > 0
