"""Tests for import URL and job argument validation."""

from __future__ import annotations

import pytest

from fibs.utils.validation import validate_args, validate_git_url


@pytest.mark.parametrize(
    "url",
    [
        "https://github.com/floooh/sokol.git",
        "http://example.com/repo",
        "git://example.com/repo.git",
        "ssh://git@example.com/repo.git",
        "file:///srv/repos/lib1",
        "git@github.com:floooh/sokol.git",
    ],
)
def test_valid_git_urls(url: str) -> None:
    assert validate_git_url(url)


@pytest.mark.parametrize(
    "url",
    [
        "",
        "--upload-pack=evil",
        "https://example.com/repo;rm -rf /",
        "https://example.com/$(whoami)",
        "https://example.com/repo\nmore",
        "ftp://example.com/repo",
        "just-a-name",
    ],
)
def test_invalid_git_urls(url: str) -> None:
    assert not validate_git_url(url)


def test_validate_args_types() -> None:
    """Each mistyped, missing or unknown arg yields one hint."""
    expected = {
        "files": ("str[]", False),
        "count": ("int", True),
        "scale": ("float", True),
        "verbose": ("bool", True),
    }

    assert validate_args({"files": ["a", "b"], "count": 2, "scale": 1, "verbose": False}, expected).valid

    res = validate_args({"files": ["a", 1], "count": True, "scale": "x", "extra": 0}, expected)
    assert not res.valid
    assert res.hints == [
        "arg 'files' must be of type str[]",
        "arg 'count' must be of type int",
        "arg 'scale' must be of type float",
        "unknown arg 'extra'",
    ]

    missing = validate_args({}, expected)
    assert missing.hints == ["expected required arg 'files'"]
