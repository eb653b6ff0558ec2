"""
Unit tests for frame building, splitting and segment classification
"""

import pytest

from src.services.stego_codec.core import cipher
from src.services.stego_codec.core.classifier import assemble, classify
from src.services.stego_codec.core.errors import (
    InvalidImageError,
    MissingKeyError,
    MultipleImagesError,
    NoHiddenDataError,
    WrongKeyError,
)
from src.services.stego_codec.core.framing import DELIMITER, build_frame, split_frame, tag_segment
from src.services.stego_codec.models.codec_models import SegmentKind
from src.services.stego_codec.utils.image_utils import to_data_url

from conftest import png_bytes


class TestBuildFrame:

    def test_text_only(self):
        build = build_frame("hello", None, "k")
        assert build.frame.endswith(b"\x00")
        assert build.frame.count(b"\x00") == 1
        assert build.segment_kinds == [SegmentKind.text]
        assert DELIMITER not in build.frame

    def test_text_and_image_order(self, nested_png):
        build = build_frame("note", nested_png, "k")
        assert build.segment_kinds == [SegmentKind.text, SegmentKind.image, SegmentKind.dimensions]
        assert build.image_size == (2, 2)
        tokens = split_frame(build.frame)
        assert len(tokens) == 3
        assert cipher.decrypt(tokens[0], "k") == (b"\x01note", True)

    def test_neither_payload(self):
        build = build_frame(None, None, "")
        assert build.frame == b"\x00"
        assert build.is_empty

    def test_empty_text_counts_as_absent(self):
        assert build_frame("", None, "k").is_empty

    def test_missing_key(self):
        with pytest.raises(MissingKeyError):
            build_frame("hello", None, "")
        with pytest.raises(MissingKeyError):
            build_frame(None, b"\x89PNG", None)

    def test_undecodable_image_is_dropped(self):
        build = build_frame("kept", b"definitely not an image", "k")
        assert build.segment_kinds == [SegmentKind.text]
        assert build.image_size is None
        assert build.warnings and "dropped" in build.warnings[0]

    def test_unsupported_nested_format_is_dropped(self, nested_image):
        build = build_frame(None, png_bytes(nested_image, "BMP"), "k")
        assert build.is_empty
        assert build.warnings


class TestSplitFrame:

    def test_empty(self):
        assert split_frame(b"") == []
        assert split_frame(b"\x00rest") == []

    def test_split_and_truncate(self):
        assert split_frame(b"aa||bb||cc\x00||dd") == ["aa", "bb", "cc"]

    def test_noise_does_not_raise(self):
        assert split_frame(b"\xff\xfe|x") == ["\xff\xfe|x"]


class TestClassify:

    def test_text(self):
        segment = classify(tag_segment(SegmentKind.text, "héllo".encode("utf-8")))
        assert segment.kind == SegmentKind.text
        assert segment.text == "héllo"

    def test_image(self, nested_png):
        data_url = to_data_url(nested_png)
        segment = classify(tag_segment(SegmentKind.image, data_url.encode("ascii")))
        assert segment.kind == SegmentKind.image
        assert segment.data_url == data_url
        assert segment.image_bytes == nested_png

    @pytest.mark.parametrize("body", [b"data:image/gif;base64,R0lG", b"hello", b"data:image/png;base64,"])
    def test_image_without_signature(self, body):
        with pytest.raises(InvalidImageError):
            classify(tag_segment(SegmentKind.image, body))

    def test_dimensions(self):
        assert classify(tag_segment(SegmentKind.dimensions, b"12x34")).size == (12, 34)
        assert classify(tag_segment(SegmentKind.dimensions, b"12by34")).kind == SegmentKind.empty

    def test_empty_and_unknown(self):
        assert classify(b"").kind == SegmentKind.empty
        assert classify(b"\x7fwhatever").kind == SegmentKind.empty


class TestAssemble:

    def test_no_tokens(self):
        with pytest.raises(NoHiddenDataError):
            assemble([], "k")

    def test_text_and_image(self, nested_png):
        tokens = split_frame(build_frame("note", nested_png, "k1").frame)
        decoded = assemble(tokens, "k1")
        assert decoded.text == "note"
        assert decoded.image == to_data_url(nested_png)
        assert (decoded.width, decoded.height) == (2, 2)

    def test_wrong_key(self, nested_png):
        tokens = split_frame(build_frame("note", nested_png, "k1").frame)
        with pytest.raises(WrongKeyError):
            assemble(tokens, "k2")

    def test_garbage_tokens_are_wrong_key(self):
        with pytest.raises(WrongKeyError):
            assemble(["\xff\x13garbage"], "k")

    def test_segments_without_content(self):
        tokens = [cipher.encrypt(b"", "k"), cipher.encrypt(b"\x09unknown", "k")]
        with pytest.raises(NoHiddenDataError):
            assemble(tokens, "k")

    def test_text_segments_are_space_joined(self):
        tokens = [
            cipher.encrypt(tag_segment(SegmentKind.text, b"first"), "k"),
            cipher.encrypt(tag_segment(SegmentKind.text, b"second "), "k"),
        ]
        assert assemble(tokens, "k").text == "first second"

    def test_multiple_images_rejected(self, nested_png):
        body = to_data_url(nested_png).encode("ascii")
        tokens = [cipher.encrypt(tag_segment(SegmentKind.image, body), "k") for _ in range(2)]
        with pytest.raises(MultipleImagesError):
            assemble(tokens, "k")

    def test_dimensions_probed_not_trusted(self, nested_png):
        tokens = [
            cipher.encrypt(tag_segment(SegmentKind.image, to_data_url(nested_png).encode("ascii")), "k"),
            cipher.encrypt(tag_segment(SegmentKind.dimensions, b"99x99"), "k"),
        ]
        decoded = assemble(tokens, "k")
        assert (decoded.width, decoded.height) == (2, 2)

    def test_partial_failure_keeps_recovered_text(self):
        tokens = [
            cipher.encrypt(tag_segment(SegmentKind.text, b"visible"), "k"),
            cipher.encrypt(tag_segment(SegmentKind.text, b"other key"), "other"),
        ]
        decoded = assemble(tokens, "k")
        assert decoded.text == "visible"
        assert decoded.failed_segments == 1

    def test_delimiter_inside_text(self, nested_png):
        tokens = split_frame(build_frame("a||b", nested_png, "k").frame)
        assert len(tokens) == 3
        decoded = assemble(tokens, "k")
        assert decoded.text == "a||b"
        assert decoded.image is not None

    def test_unreadable_image_payload_is_ignored(self):
        bogus = b"data:image/png;base64,AAAAAAAA"
        tokens = [
            cipher.encrypt(tag_segment(SegmentKind.text, b"still here"), "k"),
            cipher.encrypt(tag_segment(SegmentKind.image, bogus), "k"),
        ]
        decoded = assemble(tokens, "k")
        assert decoded.text == "still here"
        assert decoded.image is None
        assert decoded.warnings
