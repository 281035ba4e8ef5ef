"""
XML helpers shared by every operation parser.

Field extraction goes through `text_of` and `optional_text_of` only, so an
empty element and a missing element are treated the same everywhere.
"""
import logging
from typing import Iterable, Optional, Union
from xml.etree import ElementTree as ET

from src.rest.exceptions import ResponseParseError, ShapeError

logger = logging.getLogger(__name__)

ResponseBody = Union[str, bytes, ET.Element]


def text_of(nodes: Iterable[ET.Element]) -> str:
    """Concatenated text content of `nodes`; "" when nothing matched."""
    return "".join("".join(node.itertext()) for node in nodes)


def optional_text_of(nodes: Iterable[ET.Element]) -> Optional[str]:
    """Text content of `nodes`, or None when it is empty."""
    text = text_of(nodes)
    if text == "":
        return None
    return text


def parse_document(body: ResponseBody) -> ET.Element:
    """
    Parse a response body into its root element.

    Args:
        body: Raw XML text/bytes, or an element that was already parsed

    Returns:
        Root element of the document

    Raises:
        ResponseParseError: If the body is not well-formed XML
    """
    if isinstance(body, ET.Element):
        return body
    try:
        return ET.fromstring(body)
    except ET.ParseError as e:
        logger.error(f"Malformed XML response: {e}")
        raise ResponseParseError(f"Malformed XML response: {e}") from e


def find_record(body: ResponseBody, name: str) -> ET.Element:
    """
    Locate the element wrapping a single record.

    Twilio wraps payloads in <TwilioResponse>, so the record is a direct child
    of the root. A document whose root is the record itself is accepted too.

    Raises:
        ResponseParseError: If the body is not well-formed XML
        ShapeError: If no such element exists
    """
    root = parse_document(body)
    if root.tag == name:
        return root
    node = root.find(name)
    if node is None:
        raise ShapeError(name)
    return node
