"""Integration tests for public endpoints and authentication errors."""

import xml.etree.ElementTree as ET

from fastapi.testclient import TestClient

from musicflow.api.subsonic.response import SUBSONIC_XMLNS
from musicflow.application.services.auth_service import make_token

from conftest import ADMIN, envelope


def test_ping_needs_no_credentials(client: TestClient) -> None:
    response = client.get("/rest/ping")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/json")
    body = envelope(response)
    assert body["status"] == "ok"
    assert body["version"] == "1.16.1"
    assert body["type"] == "musicflow"


def test_view_suffix_and_post_are_accepted(client: TestClient) -> None:
    assert envelope(client.get("/rest/ping.view"))["status"] == "ok"
    assert envelope(client.post("/rest/ping.view"))["status"] == "ok"


def test_ping_as_xml(client: TestClient) -> None:
    response = client.get("/rest/ping", params={"f": "xml"})

    assert response.headers["content-type"].startswith("application/xml")
    root = ET.fromstring(response.content)
    assert root.tag == f"{{{SUBSONIC_XMLNS}}}subsonic-response"
    assert root.get("status") == "ok"


def test_license(client: TestClient) -> None:
    assert envelope(client.get("/rest/getLicense"))["license"]["valid"] is True


# Hey future me - error codes are part of the contract clients switch on.
def test_missing_credentials_is_code_10(client: TestClient) -> None:
    response = client.get("/rest/getArtists")

    assert response.status_code == 400
    body = envelope(response)
    assert body["status"] == "failed"
    assert body["error"]["code"] == 10


def test_wrong_password_is_code_30(client: TestClient) -> None:
    response = client.get("/rest/getArtists", params={"u": "admin", "p": "nope"})

    assert response.status_code == 401
    assert envelope(response)["error"]["code"] == 30


def test_token_auth(client: TestClient) -> None:
    params = {"u": "admin", "t": make_token("admin", "xyz"), "s": "xyz"}

    assert envelope(client.get("/rest/getArtists", params=params))["status"] == "ok"


def test_enc_password(client: TestClient) -> None:
    params = {"u": "admin", "p": "enc:" + b"admin".hex()}

    assert envelope(client.get("/rest/getArtists", params=params))["status"] == "ok"


def test_error_envelope_as_xml(client: TestClient) -> None:
    response = client.get("/rest/getArtists", params={"u": "admin", "p": "nope", "f": "xml"})

    root = ET.fromstring(response.content)
    error = root.find(f"{{{SUBSONIC_XMLNS}}}error")
    assert root.get("status") == "failed"
    assert error is not None and error.get("code") == "30"


def test_missing_required_parameter_is_code_10(client: TestClient) -> None:
    response = client.get("/rest/getAlbum", params=ADMIN)

    assert response.status_code == 400
    assert envelope(response)["error"]["code"] == 10


def test_unknown_id_is_code_50(client: TestClient) -> None:
    response = client.get("/rest/getAlbum", params={**ADMIN, "id": "nope"})

    assert response.status_code == 404
    assert envelope(response)["error"]["code"] == 50


def test_unknown_endpoint_is_code_50(client: TestClient) -> None:
    response = client.get("/rest/doesNotExist", params=ADMIN)

    assert response.status_code == 404
    assert envelope(response)["error"]["code"] == 50
