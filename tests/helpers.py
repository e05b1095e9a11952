"""Diagram fixtures and helpers shared by the tests."""

import base64
import os
import zlib
from urllib.parse import quote

from lxml import etree


def deflate_raw(data):
    """Compress bytes with raw deflate (no zlib header), as draw.io does."""
    compress = zlib.compressobj(zlib.Z_DEFAULT_COMPRESSION, zlib.DEFLATED, -15)
    return compress.compress(data) + compress.flush()


def encode_diagram_data(xml):
    """Build a <diagram> payload: URL-escape, raw deflate, base64."""
    data = quote(xml, safe="~()*!.'").encode()
    return base64.b64encode(deflate_raw(data))


PLAIN_XML = (
    '<mxGraphModel dx="1426" dy="794" grid="1" gridSize="10" page="1">'
    '<root>'
    '<mxCell id="0"/>'
    '<mxCell id="1" parent="0"/>'
    '<mxCell id="L1" value="Layer A" parent="0"/>'
    '<mxCell id="c1" value="Box" style="rounded=1;whiteSpace=wrap;" vertex="1" parent="L1">'
    '<mxGeometry x="10" y="20" width="80" height="40" as="geometry"/>'
    '</mxCell>'
    '<mxCell id="c2" value="Note" vertex="1" parent="1">'
    '<mxGeometry x="200" y="20" width="80" height="40" as="geometry"/>'
    '</mxCell>'
    '</root>'
    '</mxGraphModel>'
)

OVERLAY_XML = (
    '<mxGraphModel dx="10" dy="10">'
    '<root>'
    '<mxCell id="0"/>'
    '<mxCell id="1" parent="0"/>'
    '<mxCell id="O1" value="Overlay" parent="0"/>'
    '<mxCell id="o1" value="Arrow" edge="1" parent="O1"/>'
    '<mxCell id="o2" value="Label" vertex="1" parent="O1"/>'
    '</root>'
    '</mxGraphModel>'
)


def wrap(plain_xml, name='Page-1'):
    """Build a compressed <mxfile> around plain diagram XML."""
    payload = encode_diagram_data(plain_xml).decode('ascii')
    return (
        '<mxfile host="app.diagrams.net" version="21.1.2">'
        f'<diagram id="abc123" name="{name}">{payload}</diagram>'
        '</mxfile>'
    )


def canonical(xml):
    """Serialize XML with insignificant whitespace removed."""
    if isinstance(xml, str):
        xml = xml.encode('utf-8')
    parser = etree.XMLParser(remove_blank_text=True, huge_tree=True)
    return etree.tostring(etree.fromstring(xml, parser))


def cell_ids(cells):
    return [c.id for c in cells]


def with_embedded_image(plain_xml, size):
    """Give the first styled cell an inline image of ``size`` random bytes."""
    image = base64.b64encode(os.urandom(size)).decode('ascii')
    return plain_xml.replace(
        'style="rounded=1;', f'style="shape=image;image=data:image/png,{image};rounded=1;', 1
    )
