# app/caldenon/xml_parser.py

"""
Turns Caldén Oil payloads into plain Python structures.

The vendor answers most endpoints with XML and a few with JSON, and the same
entity can arrive under different wrapper elements depending on the endpoint
version. These helpers flatten XML into dicts and lists and then look the
records up through a list of candidate paths.
"""

import json
from typing import Any, Dict, List, Optional

from lxml import etree

from app.caldenon.exceptions import CaldenonParseException
from app.utils.logger import get_logger

logger = get_logger(__name__)

XSI_NAMESPACE = "http://www.w3.org/2001/XMLSchema-instance"
XSI_NIL = f"{{{XSI_NAMESPACE}}}nil"

_parser = etree.XMLParser(
    resolve_entities=False,
    no_network=True,
    remove_comments=True,
    huge_tree=True,
)


def _local_name(tag: str) -> str:
    return etree.QName(tag).localname


def _element_to_value(element) -> Any:
    if element.get(XSI_NIL) == "true":
        return None

    attributes = {
        _local_name(key): value
        for key, value in element.attrib.items()
        if not key.startswith(f"{{{XSI_NAMESPACE}}}")
    }
    children = [child for child in element if isinstance(child.tag, str)]
    text = (element.text or "").strip()

    if not children and not attributes:
        return text

    value: Dict[str, Any] = dict(attributes)
    for child in children:
        key = _local_name(child.tag)
        child_value = _element_to_value(child)
        if key in value and key not in attributes:
            if not isinstance(value[key], list):
                value[key] = [value[key]]
            value[key].append(child_value)
        else:
            value[key] = child_value

    if text and not children:
        value["_"] = text
    return value


def xml_to_dict(text: str) -> Dict[str, Any]:
    """
    Parse an XML document into nested dicts.

    Args:
        text: XML document as returned by the vendor

    Returns:
        ``{root_tag: value}`` where repeated children become lists,
        attributes are merged into their element and ``xsi:nil`` is None

    Raises:
        CaldenonParseException: If the document is not well formed
    """
    cleaned = (text or "").lstrip("\ufeff").strip()
    if not cleaned:
        return {}
    try:
        root = etree.fromstring(cleaned.encode("utf-8"), _parser)
    except etree.XMLSyntaxError as e:
        logger.error("XML parsing error", error=str(e), preview=cleaned[:200])
        raise CaldenonParseException(str(e)) from e
    return {_local_name(root.tag): _element_to_value(root)}


def is_html(text: str) -> bool:
    """True when the body is an HTML page rather than data"""
    head = (text or "").lstrip()[:20].lower()
    return head.startswith("<!doctype") or head.startswith("<html")


def parse_payload(text: str) -> Any:
    """
    Parse a vendor body, trying JSON before XML.

    Raises:
        CaldenonParseException: If the body is neither JSON nor XML
    """
    cleaned = (text or "").lstrip("\ufeff").strip()
    if not cleaned:
        return {}
    if cleaned[0] in "[{":
        try:
            return json.loads(cleaned)
        except json.JSONDecodeError as e:
            raise CaldenonParseException(f"invalid JSON: {e}") from e
    return xml_to_dict(cleaned)


def as_list(value: Any) -> List[Any]:
    """None becomes [], a single item is wrapped, a list is returned as is"""
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return value
    return [value]


def dig(data: Any, path: str) -> Any:
    """Follow a dotted path through nested dicts, None when any step is missing"""
    current = data
    for key in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(key)
        if current is None:
            return None
    return current


def extract_records(parsed: Any, *paths: str) -> List[Any]:
    """
    Return the records found at the first path that resolves.

    A top level JSON array is returned as is.
    """
    if isinstance(parsed, list):
        return parsed
    for path in paths:
        found = dig(parsed, path)
        if found is not None and found != "":
            return as_list(found)
    return []


def first_present(record: Dict[str, Any], *keys: str, default: Optional[Any] = None) -> Any:
    """Value of the first key holding something other than None or an empty string"""
    if not isinstance(record, dict):
        return default
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value
    return default
