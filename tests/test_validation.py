import pytest

from core.validation import INVALID_FORMAT, INVALID_PROTOCOL, MISSING_URL, validate_url


@pytest.mark.parametrize(
    "url",
    [
        "http://example.test",
        "https://example.test/path?q=1",
        "HTTPS://Example.test:8443/",
        "  https://example.test  ",
    ],
)
def test_valid_urls(url):
    assert validate_url(url) is None


@pytest.mark.parametrize("url", [None, "", "   "])
def test_missing_url(url):
    error = validate_url(url)

    assert error.status_code == 400
    assert error.message == MISSING_URL


@pytest.mark.parametrize("url", ["not a url", "example.test/path", "/relative/path", "http://"])
def test_invalid_format(url):
    error = validate_url(url)

    assert error.status_code == 400
    assert error.message == INVALID_FORMAT


@pytest.mark.parametrize("url", ["ftp://files.test/a.txt", "file:///etc/passwd", "javascript:alert(1)"])
def test_invalid_protocol(url):
    error = validate_url(url)

    assert error.status_code == 400
    assert error.message == INVALID_PROTOCOL
