"""Tests for request/response data structures and header helpers."""

import io

import httpx

from reqpipe.types import (
    FormData,
    HttpResponse,
    RequestConfig,
    find_header,
    merge_headers,
    strip_header,
)


def test_merge_headers_override_wins_case_insensitively():
    merged = merge_headers(
        {"Content-Type": "application/json", "X-App": "1"}, {"content-type": "text/plain"}
    )

    assert merged == {"X-App": "1", "content-type": "text/plain"}


def test_merge_headers_with_no_override_copies_base():
    base = {"Accept": "*/*"}
    merged = merge_headers(base, None)

    assert merged == base
    assert merged is not base


def test_find_and_strip_header():
    headers = {"CONTENT-TYPE": "application/json", "Accept": "*/*"}

    assert find_header(headers, "content-type") == "CONTENT-TYPE"
    assert find_header(headers, "authorization") is None
    assert strip_header(headers, "Content-Type") == {"Accept": "*/*"}


def test_form_data_separates_fields_and_files():
    form = FormData()
    form.append("file", ("a.bin", b"bytes"))
    form.append("count", 3)
    form.append("tag", "a")
    form.append("tag", "b")
    form.append("raw", b"raw-bytes")
    form.append("stream", io.BytesIO(b"data"))

    assert form.keys() == ["file", "count", "tag", "tag", "raw", "stream"]
    assert len(form) == 6
    assert "tag" in form
    assert form.fields == [("count", "3"), ("tag", "a"), ("tag", "b"), ("raw", b"raw-bytes")]
    assert [name for name, _ in form.files] == ["file", "stream"]
    assert [name for name, _ in form.parts()] == form.keys()
    assert form.parts()[1] == ("count", (None, "3"))


def test_build_request_writes_parts_in_append_order():
    form = FormData()
    form.append("file", ("photo.jpg", b"FILEBYTES"))
    form.append("album", "holiday")
    form.append("blob", b"raw")
    config = RequestConfig(url="https://api.example.com/upload", method="POST", body=form)

    content = config.build_request().read()

    file_at = content.index(b'name="file"')
    album_at = content.index(b'name="album"')
    blob_at = content.index(b'name="blob"')
    assert file_at < album_at < blob_at
    assert b'name="blob"\r\n' in content
    assert b'name="blob"; filename=' not in content
    assert content.count(b"Content-Type: application/octet-stream") == 0


def test_build_request_with_json_body():
    config = RequestConfig(
        url="https://api.example.com/items",
        method="POST",
        headers={"Content-Type": "application/json"},
        body='{"a": 1}',
    )

    request = config.build_request()

    assert request.method == "POST"
    assert request.url == "https://api.example.com/items"
    assert request.content == b'{"a": 1}'
    assert request.headers["content-type"] == "application/json"


def test_build_request_with_form_data():
    form = FormData()
    form.append("file", ("notes.txt", b"hello", "text/plain"))
    form.append("owner", "me")
    config = RequestConfig(url="https://api.example.com/upload", method="POST", body=form)

    request = config.build_request()
    content = request.read()

    assert request.headers["content-type"].startswith("multipart/form-data")
    assert b'filename="notes.txt"' in content
    assert b"hello" in content
    assert b'name="owner"' in content


def test_request_config_defaults():
    config = RequestConfig(url="https://api.example.com")

    assert config.method == "GET"
    assert config.headers == {}
    assert config.body is None
    assert config.timeout_ms == 10000
    assert config.suppress_error_alert is False


def test_http_response_ok_flag():
    response = HttpResponse(
        data={"a": 1},
        status=204,
        status_text="No Content",
        headers=httpx.Headers({"X-Id": "1"}),
        config=RequestConfig(url="https://api.example.com"),
    )

    assert response.ok
    assert response.headers["x-id"] == "1"
