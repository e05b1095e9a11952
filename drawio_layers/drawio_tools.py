"""
DrawIO encoding/decoding utilities.
Handles the compressed base64 XML format used by draw.io (<mxfile> wrapper).
"""

import base64
import binascii
import logging
import re
import zlib
from urllib.parse import unquote_plus

from lxml import etree

from .errors import (
    Base64DecodeError,
    InflateError,
    PercentDecodeError,
    WrapperFormatError,
)

logger = logging.getLogger(__name__)

MXFILE_MARKER = 'mxfile'

# A '%' that is not followed by two hex digits
_BAD_ESCAPE = re.compile(r'%(?![0-9A-Fa-f]{2})')


def _xml_parser():
    return etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=True)


def pako_inflate_raw(data):
    """
    Decompress raw deflate data.

    Raises:
        InflateError: the stream is corrupt or ends before its final block
    """
    decompress = zlib.decompressobj(-15)
    try:
        decompressed_data = decompress.decompress(data)
        decompressed_data += decompress.flush()
    except zlib.error as e:
        raise InflateError(f"corrupt deflate stream: {e}") from e
    if not decompress.eof:
        raise InflateError("truncated deflate stream")
    return decompressed_data


def is_mxfile(data):
    """Return True if the raw file content carries the mxfile wrapper marker."""
    if isinstance(data, bytes):
        return MXFILE_MARKER.encode() in data
    return MXFILE_MARKER in data


def _b64decode(payload):
    # Line breaks are tolerated inside the payload, anything else outside the
    # standard alphabet is not.
    cleaned = payload.replace('\r', '').replace('\n', '')
    try:
        return base64.b64decode(cleaned, validate=True)
    except (binascii.Error, ValueError) as e:
        raise Base64DecodeError(f"invalid base64 payload: {e}") from e


def _query_unescape(data):
    try:
        text = data.decode('utf-8')
    except UnicodeDecodeError as e:
        raise PercentDecodeError(f"inflated payload is not text: {e}") from e

    bad = _BAD_ESCAPE.search(text)
    if bad:
        raise PercentDecodeError(
            f"invalid percent escape at offset {bad.start()}: {text[bad.start():bad.start() + 3]!r}"
        )
    try:
        return unquote_plus(text, encoding='utf-8', errors='strict')
    except UnicodeDecodeError as e:
        raise PercentDecodeError(f"percent escapes are not valid utf-8: {e}") from e


def decode_diagram_data(data):
    """
    Decode compressed base64 drawio diagram content.

    The stages always run in this order: base64 -> raw inflate -> URL unescape.

    Args:
        data: Base64 encoded, deflate compressed, URL-encoded XML string

    Returns:
        Decoded XML string

    Raises:
        Base64DecodeError, InflateError, PercentDecodeError
    """
    if isinstance(data, bytes):
        data = data.decode('ascii', errors='replace')
    data = _b64decode(data.strip())
    data = pako_inflate_raw(data)
    return _query_unescape(data)


def decode_mxfile(data, page=0):
    """
    Unwrap an <mxfile> and return the plain <mxGraphModel> XML of one page.

    Args:
        data: raw file content (bytes or str)
        page: index of the <diagram> element to decode

    Returns:
        bytes: plain diagram XML

    Raises:
        WrapperFormatError: the wrapper is not XML or has no such page
        Base64DecodeError, InflateError, PercentDecodeError: payload stage failures
    """
    if isinstance(data, str):
        data = data.encode('utf-8')

    try:
        root = etree.fromstring(data, _xml_parser())
    except etree.XMLSyntaxError as e:
        raise WrapperFormatError(f"mxfile is not well-formed: {e}") from e

    diagrams = root.findall('.//diagram')
    if not diagrams:
        raise WrapperFormatError("mxfile has no <diagram> element")
    if page < 0 or page >= len(diagrams):
        raise WrapperFormatError(
            f"page {page} out of range, mxfile has {len(diagrams)} page(s)"
        )

    diagram = diagrams[page]
    logger.debug("Decoding page %d (%s) of %d", page, diagram.get('name', ''), len(diagrams))

    # Newer draw.io versions store the model uncompressed
    model = diagram.find('mxGraphModel')
    if model is not None:
        return etree.tostring(model, encoding='unicode', with_tail=False).encode('utf-8')

    content = diagram.text or ''
    if not content.strip():
        raise WrapperFormatError("<diagram> has no payload")

    return decode_diagram_data(content).encode('utf-8')
