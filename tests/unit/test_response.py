"""
Unit tests for response building and the response writer.
"""

import logging

import pytest

from conftest import split_response
from staticserve.errors import MethodNotSupported, NotFound, ProtocolError, TransportError
from staticserve.http.response import (
    HTTPResponse,
    ResponseBuilder,
    ResponseWriter,
    file_response_head,
    status_response,
)
from staticserve.http.status_codes import HTTPStatus


class TestHTTPResponse:
    """Tests for HTTPResponse class."""

    def test_status_line(self):
        """Test status line generation."""
        assert HTTPResponse(status=HTTPStatus.OK).status_line == "HTTP/1.1 200 OK"
        assert HTTPResponse(status=HTTPStatus.NOT_FOUND).status_line == "HTTP/1.1 404 Not Found"
        assert (HTTPResponse(status=HTTPStatus.METHOD_NOT_ALLOWED).status_line
                == "HTTP/1.1 405 Method Not Allowed")

    def test_to_bytes_sets_content_length(self):
        """Test that Content-Length is derived from the body when missing."""
        result = HTTPResponse(body=b"hello world").to_bytes()

        assert b"Content-Length: 11\r\n" in result
        assert result.endswith(b"\r\n\r\nhello world")

    def test_no_automatic_headers(self):
        """Test that nothing but the given headers and Content-Length appear."""
        result = HTTPResponse(headers={"Connection": "close"}).to_bytes()
        assert result == b"HTTP/1.1 200 OK\r\nConnection: close\r\nContent-Length: 0\r\n\r\n"


class TestResponseBuilder:
    """Tests for ResponseBuilder class."""

    def test_headers_in_order(self):
        """Test that headers serialize in the order they were set."""
        raw = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .content_type("text/css")
            .content_length(10)
            .cache(max_age=60)
            .close_connection()
            .build()
            .to_bytes())

        assert raw == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Type: text/css\r\n"
            b"Content-Length: 10\r\n"
            b"Cache-Control: public, max-age=60\r\n"
            b"Connection: close\r\n"
            b"\r\n"
        )

    def test_body_sets_content_length(self):
        response = ResponseBuilder().body("héllo").build()
        assert response.body == "héllo".encode("utf-8")
        assert response.headers["Content-Length"] == "6"


class TestFactories:
    """Tests for file_response_head() and status_response()."""

    def test_file_response_head(self):
        """Test the exact 200 head that precedes a streamed file."""
        head = file_response_head("text/html", 12).to_bytes()
        assert head == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Type: text/html\r\n"
            b"Content-Length: 12\r\n"
            b"Cache-Control: public, max-age=3600\r\n"
            b"Connection: close\r\n"
            b"\r\n"
        )

    def test_file_response_head_has_no_body(self):
        response = file_response_head("image/png", 1_000_000)
        assert response.body == b""
        assert response.headers["Content-Length"] == "1000000"

    def test_status_response(self):
        """Test the exact bytes of a generic 404."""
        raw = status_response(HTTPStatus.NOT_FOUND, "File not found").to_bytes()
        assert raw == (
            b"HTTP/1.1 404 Not Found\r\n"
            b"Content-Type: text/plain\r\n"
            b"Content-Length: 14\r\n"
            b"Connection: close\r\n"
            b"\r\n"
            b"File not found"
        )


class TestResponseWriter:
    """Tests for ResponseWriter."""

    def test_single_write(self, make_connection):
        """Test that a status response goes out in one sendall()."""
        conn = make_connection()
        ResponseWriter().send(conn, HTTPStatus.BAD_REQUEST, "Invalid request")

        assert conn.socket.send_calls == 1
        status_line, headers, body = split_response(bytes(conn.socket.sent))
        assert status_line == "HTTP/1.1 400 Bad Request"
        assert headers == {
            "Content-Type": "text/plain",
            "Content-Length": "15",
            "Connection": "close",
        }
        assert body == b"Invalid request"

    @pytest.mark.parametrize("error, status_line, body", [
        (ProtocolError(), "HTTP/1.1 400 Bad Request", b"Invalid request"),
        (MethodNotSupported(), "HTTP/1.1 405 Method Not Allowed", b"Method not allowed"),
        (NotFound(), "HTTP/1.1 404 Not Found", b"File not found"),
    ])
    def test_send_error(self, make_connection, error, status_line, body):
        conn = make_connection()
        ResponseWriter().send_error(conn, error)

        line, _, sent_body = split_response(bytes(conn.socket.sent))
        assert line == status_line
        assert sent_body == body

    def test_send_error_without_status(self, make_connection):
        """Test that a TransportError cannot be turned into a response."""
        with pytest.raises(ValueError):
            ResponseWriter().send_error(make_connection(), TransportError("gone"))

    def test_logs_full_response_event(self, make_connection, caplog):
        caplog.set_level(logging.INFO, logger="staticserve.packets")
        ResponseWriter().send(make_connection(), HTTPStatus.NOT_FOUND, "File not found",
                              file_path="/srv/www/x.txt")

        assert "FULL_RESPONSE" in caplog.text
        assert "status=404 Not Found" in caplog.text
        assert "file=/srv/www/x.txt" in caplog.text
