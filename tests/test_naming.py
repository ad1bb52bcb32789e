"""Tests for folder, prefix and object name derivation."""

import re

import pytest

from image_variants.core.models import UploadOptions
from image_variants.core.naming import MonotonicMillisClock, PathNamer


class TestResolveFolder:
    """Tests for PathNamer.resolve_folder."""

    @pytest.mark.parametrize(
        "options,expected",
        [
            ({}, "uploads"),
            ({"user_id": "u"}, "uploads/users/u"),
            ({"category": "c"}, "uploads/c"),
            ({"user_id": "u", "category": "c"}, "uploads/c/u"),
            ({"folder": "x", "user_id": "u", "category": "c"}, "x"),
            ({"folder": "custom/path"}, "custom/path"),
            ({"user_id": "", "category": ""}, "uploads"),
            ({"folder": "", "category": "c"}, "uploads/c"),
        ],
    )
    def test_precedence(self, options, expected):
        assert PathNamer().resolve_folder(UploadOptions(**options)) == expected

    def test_none_options(self):
        assert PathNamer().resolve_folder(None) == "uploads"


class TestResolvePrefix:
    """Tests for PathNamer.resolve_prefix."""

    @pytest.mark.parametrize(
        "options,expected",
        [
            ({}, "image"),
            ({"user_id": "u", "category": "c"}, "u_c"),
            ({"user_id": "u"}, "u"),
            ({"category": "c"}, "c"),
            ({"user_id": "", "category": "c"}, "c"),
            ({"folder": "ignored"}, "image"),
        ],
    )
    def test_prefix(self, options, expected):
        assert PathNamer().resolve_prefix(UploadOptions(**options)) == expected


class TestObjectName:
    """Tests for PathNamer.object_name."""

    def test_format(self):
        namer = PathNamer(clock=lambda: 1700000000000)
        assert namer.object_name("u_c", "thumbnail") == "u_c_thumbnail_1700000000000"

    def test_default_clock_is_unix_millis(self):
        name = PathNamer().object_name("image", "large")
        match = re.fullmatch(r"image_large_(\d+)", name)
        assert match is not None
        assert len(match.group(1)) >= 13

    def test_repeated_names_are_unique(self):
        namer = PathNamer()
        names = {namer.object_name("image", "thumbnail") for _ in range(200)}
        assert len(names) == 200


class TestMonotonicMillisClock:
    """Tests for MonotonicMillisClock."""

    def test_frozen_time_still_increases(self):
        clock = MonotonicMillisClock(time_fn=lambda: 1700000000.0)
        assert [clock(), clock(), clock()] == [
            1700000000000,
            1700000000001,
            1700000000002,
        ]

    def test_follows_wall_clock_when_ahead(self):
        times = iter([1.0, 5.0])
        clock = MonotonicMillisClock(time_fn=lambda: next(times))
        assert clock() == 1000
        assert clock() == 5000
