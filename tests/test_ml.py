from __future__ import annotations

import contextlib
import json
import socket
import threading
import urllib.error
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from swkit.ml import (
    ClassifierPrediction,
    StringsRanker,
    pe_class_prediction,
    rank_strings,
)

SHA = "4c728576bd65c8e8348410d1ab3bb5d6cae093985d9e82d3121295b16429b2db"

PE_RESPONSE = {
    "predicted_class": "Label.MALICIOUS",
    "predicted_probability": 0.978692142794345,
    "predicted_score": "Malicious (High Trust)",
    "sha256": SHA,
}

RANK_RESPONSE = {
    "strings": ["GetProcAddress", "LoadLibraryA", "GetProcessHeap"],
    "sha256": SHA,
}


@contextlib.contextmanager
def _serve(payload: bytes, status: int = 200):
    received = []

    class Handler(BaseHTTPRequestHandler):
        def do_POST(self):
            length = int(self.headers.get("Content-Length", 0))
            received.append((self.path, self.headers.get("Content-Type"), self.rfile.read(length)))
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(payload)))
            self.end_headers()
            self.wfile.write(payload)

        def log_message(self, *args):
            pass

    server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        host, port = server.server_address[:2]
        yield f"http://{host}:{port}", received
    finally:
        server.shutdown()
        server.server_close()
        thread.join()


def _json_line(obj) -> bytes:
    return (json.dumps(obj) + "\n").encode()


def test_pe_class_prediction():
    features = b'{"sha256": "%s"}' % SHA.encode()
    with _serve(_json_line(PE_RESPONSE)) as (url, received):
        got = pe_class_prediction(url, features)
    assert got == ClassifierPrediction(
        predicted_class="Label.MALICIOUS",
        probability=0.978692142794345,
        score="Malicious (High Trust)",
        sha256=SHA,
    )
    [(path, content_type, body)] = received
    assert path == "/api/static/pe"
    assert content_type == "application/json; charset=utf-8"
    assert body == features


def test_rank_strings():
    payload = b'{"strings": ["LoadLibraryA"]}'
    with _serve(_json_line(RANK_RESPONSE)) as (url, received):
        got = rank_strings(url, payload)
    assert got.sha256 == SHA
    assert got.strings == ["GetProcAddress", "LoadLibraryA", "GetProcessHeap"]
    [(path, _, body)] = received
    assert path == "/api/static/strings"
    assert body == payload


def test_error_status_body_is_still_decoded():
    with _serve(_json_line({"sha256": SHA}), status=500) as (url, _):
        got = pe_class_prediction(url, b"{}")
    assert got == ClassifierPrediction(sha256=SHA)


def test_invalid_json_raises():
    with _serve(b"not json") as (url, _):
        with pytest.raises(ValueError):
            rank_strings(url, b"{}")


def test_unreachable_server_raises():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    with pytest.raises(urllib.error.URLError):
        pe_class_prediction(f"http://127.0.0.1:{port}", b"{}")


def test_from_dict_missing_fields_use_defaults():
    assert ClassifierPrediction.from_dict({}) == ClassifierPrediction()
    assert StringsRanker.from_dict({"sha256": SHA}) == StringsRanker(strings=[], sha256=SHA)


def test_from_dict_round_trips_response():
    assert ClassifierPrediction.from_dict(PE_RESPONSE).probability == PE_RESPONSE["predicted_probability"]
    assert StringsRanker.from_dict(RANK_RESPONSE).strings == RANK_RESPONSE["strings"]


@pytest.mark.parametrize(
    "data",
    [
        [],
        {"predicted_probability": "high"},
        {"predicted_probability": True},
        {"predicted_class": 3},
    ],
)
def test_prediction_from_bad_data_raises(data):
    with pytest.raises(ValueError):
        ClassifierPrediction.from_dict(data)


def test_ranker_from_bad_strings_raises():
    with pytest.raises(ValueError):
        StringsRanker.from_dict({"strings": "GetProcAddress"})