"""
Response representations and Accept negotiation.

Resources are served as JSON (default) or XML. The chosen media type is
part of both the validator and the response store key, so one
representation's validator never answers for another.
"""

from typing import Any, List, Optional, Tuple
from xml.etree import ElementTree

from shared.errors import NotAcceptable
from .freshness import serialize_payload


JSON_MEDIA_TYPE = "application/json"
XML_MEDIA_TYPE = "application/xml"

_EXACT = {
    "application/json": JSON_MEDIA_TYPE,
    "text/json": JSON_MEDIA_TYPE,
    "application/xml": XML_MEDIA_TYPE,
    "text/xml": XML_MEDIA_TYPE,
    "*/*": JSON_MEDIA_TYPE,
    "application/*": JSON_MEDIA_TYPE,
    "text/*": XML_MEDIA_TYPE,
}


def _media_type_for(media_range: str) -> Optional[str]:
    if media_range in _EXACT:
        return _EXACT[media_range]
    if media_range.endswith("+json"):
        return JSON_MEDIA_TYPE
    if media_range.endswith("+xml"):
        return XML_MEDIA_TYPE
    return None


def _quality(params: List[str]) -> float:
    for param in params:
        name, _, value = param.partition("=")
        if name.strip().lower() == "q":
            try:
                return float(value.strip())
            except ValueError:
                return 0.0
    return 1.0


def negotiate(accept: Optional[str]) -> str:
    """Pick the representation for an Accept header; raises NotAcceptable.

    The highest q-value wins; equal q-values keep header order. A missing
    or blank header means JSON.
    """
    if accept is None or not accept.strip():
        return JSON_MEDIA_TYPE

    candidates: List[Tuple[float, int, str]] = []
    for position, media_range in enumerate(accept.split(",")):
        media_type, *params = media_range.split(";")
        chosen = _media_type_for(media_type.strip().lower())
        quality = _quality(params)
        if chosen is not None and quality > 0:
            candidates.append((-quality, position, chosen))

    if not candidates:
        raise NotAcceptable(accept)
    return min(candidates)[2]


def _append(parent: ElementTree.Element, name: str, value: Any) -> None:
    element = ElementTree.SubElement(parent, name)
    if value is None:
        element.set("nil", "true")
    elif isinstance(value, dict):
        for key, item in value.items():
            _append(element, key, item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            _append(element, "item", item)
    elif isinstance(value, bool):
        element.text = "true" if value else "false"
    else:
        element.text = str(value)


def serialize_xml(payload: Any, entity_name: str) -> bytes:
    """XML document for a shaped entity (``<AuthorDto>``) or list (``<ArrayOfAuthorDto>``)."""
    if isinstance(payload, (list, tuple)):
        root = ElementTree.Element(f"ArrayOf{entity_name}")
        for item in payload:
            _append(root, entity_name, item)
    else:
        root = ElementTree.Element(entity_name)
        for key, value in (payload or {}).items():
            _append(root, key, value)
    return ElementTree.tostring(root, encoding="utf-8")


def render(payload: Any, media_type: str, entity_name: str) -> bytes:
    """Body bytes of a payload in the negotiated media type."""
    if media_type == XML_MEDIA_TYPE:
        return serialize_xml(payload, entity_name)
    return serialize_payload(payload)
