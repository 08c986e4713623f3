import pytest

from core.request_types import JsonBody, NoBody, RawBody, TextBody
from core.transform import BodyEncoder, ResponseTranslator

FORM = "application/x-www-form-urlencoded"


@pytest.fixture
def encoder():
    return BodyEncoder()


@pytest.fixture
def translator():
    return ResponseTranslator()


class TestBodyEncoder:
    def test_no_body(self, encoder):
        assert encoder.encode(NoBody(), "application/json") is None

    def test_form_mapping_in_mapping_order(self, encoder):
        assert encoder.encode(JsonBody({"a": "1", "b": "2"}), FORM) == b"a=1&b=2"

    def test_form_values_are_url_encoded(self, encoder):
        body = JsonBody({"q": "a b&c", "n": 3, "flag": True, "tags": ["x", "y"]})

        assert encoder.encode(body, f"{FORM}; charset=utf-8") == b"q=a+b%26c&n=3&flag=true&tags=x&tags=y"

    def test_form_string_passes_unchanged(self, encoder):
        assert encoder.encode(TextBody("a=1&b=2"), FORM) == b"a=1&b=2"

    def test_structured_value_becomes_json(self, encoder):
        assert encoder.encode(JsonBody({"x": 1}), "application/json") == b'{"x": 1}'

    def test_structured_value_without_content_type_becomes_json(self, encoder):
        assert encoder.encode(JsonBody([1, 2]), None) == b"[1, 2]"

    def test_text_and_raw_pass_through(self, encoder):
        assert encoder.encode(TextBody("héllo"), "text/plain") == "héllo".encode()
        assert encoder.encode(RawBody(b"\xff\x00"), "application/octet-stream") == b"\xff\x00"

    def test_default_content_type(self, encoder):
        assert encoder.default_content_type(JsonBody({})) == "application/json"
        assert encoder.default_content_type(TextBody("x")) is None


class TestResponseTranslator:
    def test_json_is_rendered_compactly(self, translator):
        content, media_type = translator.translate(
            b'{\n  "x": 1\n}', "application/json; charset=utf-8", "utf-8"
        )

        assert content == b'{"x":1}'
        assert media_type == "application/json"

    def test_invalid_json_passes_through(self, translator):
        content, media_type = translator.translate(b"{oops", "application/json", "utf-8")

        assert content == b"{oops"
        assert media_type == "application/json"

    def test_text_is_reencoded_as_utf8(self, translator):
        content, media_type = translator.translate(
            "café".encode("latin-1"), "text/plain; charset=iso-8859-1", "iso-8859-1"
        )

        assert content == "café".encode()
        assert media_type == "text/plain; charset=utf-8"

    def test_binary_passes_through(self, translator):
        content, media_type = translator.translate(b"\x89PNG", "image/png", None)

        assert content == b"\x89PNG"
        assert media_type == "image/png"

    def test_missing_content_type(self, translator):
        assert translator.translate(b"raw", None, None) == (b"raw", None)
