"""
Tests for size specification parsing and outcome types.
"""

import pytest

from app.core.exceptions import ValidationException
from app.models.domain import (
    NO_ACTION,
    ExplicitSize,
    IntermediateImage,
    NamedSize,
    NoAction,
    Resized,
    parse_size_spec,
)


class TestParseSizeSpec:

    def test_string_is_named_size(self):
        assert parse_size_spec("medium") == NamedSize("medium")

    @pytest.mark.parametrize("raw", [[150, 150], (150, 150), ["150", "150"]])
    def test_pair_is_explicit_size(self, raw):
        assert parse_size_spec(raw) == ExplicitSize(150, 150)

    def test_existing_spec_passes_through(self):
        spec = ExplicitSize(10, 20)
        assert parse_size_spec(spec) is spec

    @pytest.mark.parametrize("raw", ["", None, 150, [150], [150, 150, 1], [0, 150], [150, -1], ["a", 1], [True, False]])
    def test_malformed_sizes_raise(self, raw):
        with pytest.raises(ValidationException) as exc_info:
            parse_size_spec(raw)
        assert exc_info.value.status_code == 400


class TestOutcomes:

    def test_explicit_size_key(self):
        assert ExplicitSize(640, 360).key == "640x360"

    def test_no_action_instances_are_equal(self):
        assert NoAction() == NO_ACTION

    def test_resized_as_downsize(self):
        assert Resized("/u/a-1x2.jpg", 1, 2).as_downsize() == ("/u/a-1x2.jpg", 1, 2, True)

    def test_intermediate_image_without_mime_type(self):
        assert IntermediateImage("a-1x2.bmp", 1, 2).to_dict() == {"file": "a-1x2.bmp", "width": 1, "height": 2}
