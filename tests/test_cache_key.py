"""
Tests for building derived-image paths and decoding them back.
"""

import pytest

from imageprinter.core.cache_key import build_cache_key, create_helper, parse_request
from imageprinter.core.errors import InvalidRequestPath, MalformedOptions
from imageprinter.core.options import OptionSet

OPTIONS = OptionSet([("width", "200"), ("height", "100"), ("quality", "100"), ("crop", "true")])


def strip_prefix(uri, prefix):
    assert uri.startswith(prefix)
    return uri[len(prefix):]


class TestBuildCacheKey:

    def test_splices_options_before_extension(self):
        uri = build_cache_key("large/image.jpg", OPTIONS, "/ip")
        assert uri == "/ip/large/image__width-200,height-100,quality-100,crop-true.jpg"

    def test_without_prefix_or_directory(self):
        assert build_cache_key("image.png", {"width": 10}) == "image__width-10.png"

    def test_normalizes_backslashes(self):
        assert build_cache_key("large\\image.jpg", {"width": 1}, "/ip/") == "/ip/large/image__width-1.jpg"

    def test_file_without_extension(self):
        assert build_cache_key("photos/raw", {"width": 1}) == "photos/raw__width-1"

    def test_deterministic(self):
        assert build_cache_key("a/b.jpg", OPTIONS, "/ip") == build_cache_key("a/b.jpg", OptionSet(OPTIONS), "/ip")


class TestParseRequest:

    def test_round_trip_with_prefix(self):
        uri = build_cache_key("large/image.jpg", OPTIONS, "/ip")
        request = parse_request(strip_prefix(uri, "/ip"))
        assert request.source == "large/image.jpg"
        assert request.options == OPTIONS
        assert request.options.keys() == OPTIONS.keys()
        assert request.cache_file == "large/image__width-200,height-100,quality-100,crop-true.jpg"

    def test_round_trip_typed_values(self):
        options = OptionSet([("width", 64), ("height", 48), ("crop", False), ("op", "thumb")])
        request = parse_request(build_cache_key("thumbs/cat.webp", options))
        assert request.source == "thumbs/cat.webp"
        assert request.options == options

    def test_rejects_key_that_would_shift_the_split(self):
        with pytest.raises(MalformedOptions):
            build_cache_key("img.jpg", [("_k", "1"), ("width", "2")])

    def test_round_trip_with_underscores(self):
        options = OptionSet([("max_w", "a_"), ("b", "_c")])
        request = parse_request(build_cache_key("img_.jpg", options))
        assert request.source == "img_.jpg"
        assert request.options.items() == options.items()

    def test_uses_last_separator(self):
        request = parse_request("/my__photo__width-10.png")
        assert request.source == "my__photo.png"
        assert request.options == {"width": "10"}

    def test_missing_separator(self):
        with pytest.raises(InvalidRequestPath):
            parse_request("/large/image.jpg")

    def test_missing_base_name(self):
        with pytest.raises(InvalidRequestPath):
            parse_request("/__width-10.jpg")

    def test_rejects_parent_segments(self):
        with pytest.raises(InvalidRequestPath):
            parse_request("/../secret/image__width-10.jpg")

    def test_malformed_options(self):
        with pytest.raises(MalformedOptions):
            parse_request("/image__width.jpg")


class TestCreateHelper:

    def test_fills_defaults_after_given_options(self):
        helper = create_helper("/ip")
        uri = helper("image.jpg", {"width": 400, "height": 200, "crop": True})
        assert uri == "/ip/image__width-400,height-200,crop-true,quality-80.jpg"

    def test_builtin_defaults(self):
        helper = create_helper()
        assert helper("image.jpg") == "image__width-300,height-200,crop-true,quality-80.jpg"

    def test_helper_defaults_override_builtin(self):
        helper = create_helper("/ip", {"quality": 50})
        request = parse_request(strip_prefix(helper("a/b.jpg"), "/ip"))
        assert request.options == {"quality": "50", "width": "300", "height": "200", "crop": "true"}

    def test_links_decode_to_same_source(self):
        helper = create_helper("/ip")
        uri = helper("image.jpg", {"width": 200, "height": 200, "op": "test"})
        request = parse_request(strip_prefix(uri, "/ip"))
        assert request.source == "image.jpg"
        assert request.options.get("op") == "test"
