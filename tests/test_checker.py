import io
import json
import socket
import threading
import zipfile
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from hapiq.checker import (
    Checker,
    CheckerConfig,
    CheckResult,
    calculate_likelihood,
    classify_url,
    normalize_target,
)


class _Handler(BaseHTTPRequestHandler):
    def _respond(self, with_body):
        route = self.server.routes.get(self.path)
        if route is None:
            self.send_response(404)
            self.send_header("Content-Length", "0")
            self.end_headers()
            return
        status, headers, payload = route
        self.send_response(status)
        for name, value in headers.items():
            self.send_header(name, value)
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        if with_body:
            self.wfile.write(payload)

    def do_HEAD(self):
        self._respond(False)

    def do_GET(self):
        self._respond(True)

    def log_message(self, *args):
        pass


@pytest.fixture
def server():
    httpd = ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
    httpd.routes = {}
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    yield httpd
    httpd.shutdown()
    httpd.server_close()


def _url(httpd, path):
    host, port = httpd.server_address[:2]
    return f"http://{host}:{port}{path}"


def _checker(**kwargs):
    return Checker(CheckerConfig(timeout_seconds=5, **kwargs))


def test_normalize_doi_target():
    assert normalize_target("10.1234/abc") == ("https://doi.org/10.1234/abc", "doi")


def test_normalize_zenodo_record_number():
    assert normalize_target("123456") == ("https://zenodo.org/record/123456", "zenodo")


def test_normalize_url_is_classified():
    assert normalize_target("https://github.com/user/repo") == (
        "https://github.com/user/repo",
        "github",
    )


def test_normalize_unrecognized_target_raises():
    with pytest.raises(ValueError, match="unrecognized target format"):
        normalize_target("not a dataset")


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://zenodo.org/record/123456", "zenodo"),
        ("https://figshare.com/articles/x/1", "figshare"),
        ("https://datadryad.org/stash/dataset/x", "dryad"),
        ("https://github.com/user/repo", "github"),
        ("https://doi.org/10.1234/abc", "doi"),
        ("https://example.com/data", "generic"),
    ],
)
def test_classify_url(url, expected):
    assert classify_url(url) == (url, expected)


def test_calculate_likelihood_caps_at_one():
    result = CheckResult(
        target="t",
        valid=True,
        dataset_type="zenodo",
        content_type="application/zip",
        content_length=2 * 1024 * 1024,
    )
    score = calculate_likelihood(result)
    assert score == pytest.approx(1.0)
    assert score <= 1.0


def test_calculate_likelihood_valid_bonus():
    invalid = CheckResult(target="t", dataset_type="generic")
    valid = CheckResult(target="t", dataset_type="generic", valid=True)
    assert calculate_likelihood(valid) - calculate_likelihood(invalid) == pytest.approx(0.3)
    assert calculate_likelihood(invalid) == pytest.approx(0.1)


def test_check_valid_url(server):
    payload = b"<html></html>"
    server.routes["/page"] = (200, {"Content-Type": "text/html", "ETag": '"abc"'}, payload)

    result = _checker().check(_url(server, "/page"))

    assert result.error == ""
    assert result.valid is True
    assert result.http_status == 200
    assert result.content_type == "text/html"
    assert result.content_length == len(payload)
    assert result.dataset_type == "generic"
    assert result.metadata["etag"] == '"abc"'
    assert "server" in result.metadata
    assert result.likelihood_score == calculate_likelihood(result)
    assert result.file_structure is None


def test_check_not_found(server):
    result = _checker().check(_url(server, "/missing"))
    assert result.valid is False
    assert result.http_status == 404
    assert result.error == ""


def test_check_unrecognized_target():
    result = _checker().check("???")
    assert result.valid is False
    assert result.error == "unrecognized target format: ???"


def test_check_connection_failure():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    result = _checker().check(f"http://127.0.0.1:{port}/nothing")
    assert result.valid is False
    assert result.error.startswith("HTTP request failed")


def test_check_with_download_analyzes_archive(server):
    csv_bytes = b"a,b\n1,2\n"
    json_bytes = b'{"x": 1}'
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        archive.writestr("a.csv", csv_bytes)
        archive.writestr("sub/c.json", json_bytes)
    server.routes["/data.zip"] = (200, {"Content-Type": "application/zip"}, buffer.getvalue())

    result = _checker(download=True).check(_url(server, "/data.zip"))

    assert result.valid is True
    structure = result.file_structure
    assert structure is not None
    assert structure.total_files == 2
    assert structure.total_size == len(csv_bytes) + len(json_bytes)
    assert structure.extensions == {".csv": 1, ".json": 1}
    assert structure.archives == ["data.zip"]
    assert sum(structure.file_types.values()) == 2


def test_to_dict_round_trips_through_json():
    result = CheckResult(target="10.1234/abc", dataset_type="doi", valid=True, http_status=200)
    data = json.loads(json.dumps(result.to_dict()))
    assert data["target"] == "10.1234/abc"
    assert data["dataset_type"] == "doi"
    assert data["http_status"] == 200
    assert data["valid"] is True
    assert "error" not in data
    assert "metadata" not in data


def test_output_json(capsys):
    checker = _checker(output_format="json")
    checker.output_result(CheckResult(target="123456", error="boom"))
    data = json.loads(capsys.readouterr().out)
    assert data["target"] == "123456"
    assert data["error"] == "boom"


def test_output_human(capsys):
    checker = _checker(output_format="human")
    checker.output_result(CheckResult(target="123456", error="boom"))
    err = capsys.readouterr().err
    assert "Target: 123456" in err
    assert "Error: boom" in err


def test_output_unsupported_format():
    checker = _checker(output_format="xml")
    with pytest.raises(ValueError, match="unsupported output format"):
        checker.output_result(CheckResult(target="t"))