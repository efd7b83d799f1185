# tests/test_device.py
import pytest

from mina_notes.common.device import resolve_device_id
from mina_notes.common.errors import BadRequestError


def test_api_requires_device_header(client):
    for method, url in [
        ("get", "/api/notes"),
        ("post", "/api/notes"),
        ("get", "/api/notes/1"),
        ("delete", "/api/attachments/1"),
        ("post", "/api/ai/dashboard-chat"),
    ]:
        r = getattr(client, method)(url)
        assert r.status_code == 400, url
        assert r.get_json() == {"message": "Missing x-device-id header"}


def test_blank_device_header_is_rejected(client):
    r = client.get("/api/notes", headers={"x-device-id": "   "})
    assert r.status_code == 400


def test_overlong_device_header_is_rejected(client):
    r = client.get("/api/notes", headers={"x-device-id": "x" * 500})
    assert r.status_code == 400
    assert r.get_json()["message"] == "Invalid x-device-id header"


def test_device_header_is_trimmed(client):
    r = client.post("/api/notes", headers={"x-device-id": "  dev1  "}, json={"title": "t", "content": "c"})
    assert r.get_json()["device_id"] == "dev1"
    r = client.get("/api/notes", headers={"x-device-id": "dev1"})
    assert len(r.get_json()) == 1


def test_routes_outside_api_do_not_need_device(client):
    assert client.get("/healthz").status_code == 200
    assert client.get("/openapi.json").status_code == 200


def test_preflight_is_exempt(client):
    r = client.options(
        "/api/notes",
        headers={"Origin": "http://localhost:5173", "Access-Control-Request-Method": "GET"},
    )
    assert r.status_code == 200


def test_resolve_device_id_unit():
    assert resolve_device_id({"x-device-id": "abc"}) == "abc"
    with pytest.raises(BadRequestError):
        resolve_device_id({})
    with pytest.raises(BadRequestError):
        resolve_device_id({"x-device-id": "abcdef"}, max_length=3)
