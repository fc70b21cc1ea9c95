"""Subsonic response envelope in JSON and XML.

Payloads are plain dicts using Subsonic's camelCase names. The same dict
renders to both formats:

- scalar values become XML attributes,
- dict values become child elements,
- list values become one child element per item,
- a ``value`` key becomes the element text (lyrics and similar).
"""

import json
import xml.etree.ElementTree as ET
from datetime import datetime
from typing import Any

from fastapi import Request
from fastapi.responses import Response

SUBSONIC_API_VERSION = "1.16.1"
SUBSONIC_XMLNS = "http://subsonic.org/restapi"
SERVER_TYPE = "musicflow"

JSON_CONTENT_TYPE = "application/json; charset=utf-8"
XML_CONTENT_TYPE = "application/xml; charset=utf-8"


def wants_xml(request: Request) -> bool:
    """Subsonic clients choose the format with ``f``; we default to JSON."""
    return request.query_params.get("f", "json").lower() == "xml"


def _server_version(request: Request) -> str:
    settings = getattr(request.app.state, "settings", None)
    return getattr(settings, "app_version", "1.0.0")


def _scalar(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def _attr(value: Any) -> str:
    value = _scalar(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _clean(value: Any) -> Any:
    """Drop None values recursively and serialise datetimes."""
    if isinstance(value, dict):
        return {k: _clean(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_clean(item) for item in value if item is not None]
    return _scalar(value)


def _fill_element(element: ET.Element, payload: dict[str, Any]) -> None:
    for key, value in payload.items():
        if value is None:
            continue
        if isinstance(value, dict):
            _fill_element(ET.SubElement(element, key), value)
        elif isinstance(value, list):
            for item in value:
                child = ET.SubElement(element, key)
                if isinstance(item, dict):
                    _fill_element(child, item)
                elif item is not None:
                    child.text = _attr(item)
        elif key == "value":
            element.text = _attr(value)
        else:
            element.set(key, _attr(value))


def render_envelope(
    status: str, payload: dict[str, Any] | None, server_version: str, as_xml: bool
) -> tuple[bytes, str]:
    """Render a full envelope. Returns (body, content type)."""
    header: dict[str, Any] = {
        "status": status,
        "version": SUBSONIC_API_VERSION,
        "type": SERVER_TYPE,
        "serverVersion": server_version,
    }
    body = {**header, **(payload or {})}

    if as_xml:
        root = ET.Element("subsonic-response", {"xmlns": SUBSONIC_XMLNS})
        _fill_element(root, body)
        xml_bytes = ET.tostring(root, encoding="utf-8", xml_declaration=True)
        return xml_bytes, XML_CONTENT_TYPE

    text = json.dumps({"subsonic-response": _clean(body)}, ensure_ascii=False)
    return text.encode("utf-8"), JSON_CONTENT_TYPE


def subsonic_response(request: Request, payload: dict[str, Any] | None = None) -> Response:
    """Successful envelope in the format the client asked for."""
    body, content_type = render_envelope(
        "ok", payload, _server_version(request), wants_xml(request)
    )
    return Response(content=body, media_type=content_type)


def error_response(
    request: Request, code: int, message: str, http_status: int
) -> Response:
    """Failed envelope with a Subsonic error code."""
    body, content_type = render_envelope(
        "failed",
        {"error": {"code": code, "message": message}},
        _server_version(request),
        wants_xml(request),
    )
    return Response(content=body, media_type=content_type, status_code=http_status)
