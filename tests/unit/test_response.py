"""
Unit tests for HTTP response encoding.
"""

import pytest

from httpwire.http.response import (
    ResponseSpec,
    encode_response,
    reason_phrase,
    ok,
    bad_request,
    not_found,
    internal_error,
)


class TestEncodeResponse:
    """Tests for encode_response()."""

    def test_exact_wire_bytes(self):
        """Test the full serialization with default headers only."""
        assert encode_response(200, "hi") == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Length: 2\r\n"
            b"Content-Type: text/plain\r\n"
            b"\r\n"
            b"hi"
        )

    @pytest.mark.parametrize("status,line", [
        (200, b"HTTP/1.1 200 OK\r\n"),
        (400, b"HTTP/1.1 400 Bad Request\r\n"),
        (404, b"HTTP/1.1 404 Not Found\r\n"),
        (500, b"HTTP/1.1 500 Internal Server Error\r\n"),
    ])
    def test_known_reasons(self, status: int, line: bytes):
        assert encode_response(status, "").startswith(line)

    @pytest.mark.parametrize("status", [201, 204, 301, 403, 503, 999])
    def test_unknown_status_reads_ok(self, status: int):
        """Test that codes outside the table fall back to "OK"."""
        assert encode_response(status, "").startswith(f"HTTP/1.1 {status} OK\r\n".encode())
        assert reason_phrase(status) == "OK"

    def test_override_keeps_default_position(self):
        """Test that a caller header replaces the default in place and extras follow."""
        result = encode_response(
            200,
            "{}",
            {"Content-Type": "application/json", "X-A": "1", "X-B": "2"},
        )

        assert result == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Length: 2\r\n"
            b"Content-Type: application/json\r\n"
            b"X-A: 1\r\n"
            b"X-B: 2\r\n"
            b"\r\n"
            b"{}"
        )

    def test_override_is_case_sensitive(self):
        """Test that only an identically spelled name overrides a default."""
        result = encode_response(200, "", {"content-type": "text/html"})

        assert b"Content-Type: text/plain\r\n" in result
        assert b"content-type: text/html\r\n" in result

    def test_caller_may_override_content_length(self):
        result = encode_response(200, "abc", {"Content-Length": "99"})
        assert b"Content-Length: 99\r\n" in result
        assert b"Content-Length: 3" not in result

    def test_content_length_counts_bytes(self):
        """Test that Content-Length is the UTF-8 byte length, not the character count."""
        result = encode_response(200, "héllo wörld")
        assert b"Content-Length: 13\r\n" in result
        assert result.endswith("héllo wörld".encode("utf-8"))

    def test_empty_body(self):
        result = encode_response(404)
        assert b"Content-Length: 0\r\n" in result
        assert result.endswith(b"\r\n\r\n")

    @pytest.mark.parametrize("body", [
        b"",
        b"plain",
        b"\r\n\r\nlooks like a header terminator",
        bytes(range(256)),
    ])
    def test_body_follows_header_block(self, body: bytes):
        """Test that the bytes after the first CRLF CRLF are exactly the body."""
        result = encode_response(200, body, {"X-Test": "yes"})

        header_end = result.find(b"\r\n\r\n")
        assert result[header_end + 4:] == body

    def test_pure(self):
        headers = {"X-A": "1"}
        first = encode_response(200, "same", headers)
        second = encode_response(200, "same", headers)

        assert first == second
        assert headers == {"X-A": "1"}


class TestResponseSpec:
    """Tests for the ResponseSpec dataclass."""

    def test_defaults(self):
        response = ResponseSpec()
        assert response.status == 200
        assert response.body == b""
        assert response.headers == {}

    def test_status_line(self):
        assert ResponseSpec(status=404).status_line == "HTTP/1.1 404 Not Found"
        assert ResponseSpec(status=201).status_line == "HTTP/1.1 201 OK"

    def test_set_header_chaining(self):
        response = (ResponseSpec()
            .set_header("X-One", "1")
            .set_header("X-Two", "2"))

        assert response.headers == {"X-One": "1", "X-Two": "2"}

    def test_to_bytes(self):
        response = ResponseSpec(status=200, body="hi", headers={"X-A": "1"})
        assert response.to_bytes() == encode_response(200, "hi", {"X-A": "1"})


class TestConvenienceFunctions:
    """Tests for the response helpers."""

    def test_ok(self):
        response = ok("Cows will fly!")
        assert response.status == 200
        assert response.body == "Cows will fly!"
        assert response.headers == {}

    def test_ok_with_content_type(self):
        response = ok('{"a": 1}', content_type="application/json")
        assert response.headers == {"Content-Type": "application/json"}

    @pytest.mark.parametrize("factory,status,body", [
        (bad_request, 400, "Bad Request"),
        (not_found, 404, "Not Found"),
        (internal_error, 500, "Internal Server Error"),
    ])
    def test_error_helpers(self, factory, status, body):
        response = factory()
        assert response.status == status
        assert response.body == body
