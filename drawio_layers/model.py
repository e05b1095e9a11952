"""
Cell model for plain draw.io diagrams (<mxGraphModel>).

A diagram is a flat list of cells under <mxGraphModel><root>. Hierarchy is
implicit: every cell points at its container through its ``parent``
attribute. Cells whose parent is the root pseudo-cell "0" are layers.
"""

import copy
import logging
from dataclasses import dataclass, field, replace

from lxml import etree

from .errors import DiagramParseError, ExportError

logger = logging.getLogger(__name__)

ROOT_ID = '0'
DEFAULT_LAYER_ID = '1'
RESERVED_IDS = (ROOT_ID, DEFAULT_LAYER_ID)
DEFAULT_LAYER_NAME = 'Background'

MODEL_TAG = 'mxGraphModel'
CELL_TAG = 'mxCell'
DERIVED_FIELDS = ('id', 'parent', 'value')

# Wrapper elements that carry custom properties; their geometry and parent
# live on a nested <mxCell>.
WRAPPER_TAGS = ('object', 'UserObject')


@dataclass(frozen=True)
class LayerInfo:
    """Name, id and list position of a root-parented cell."""
    name: str
    id: str
    idx: int


@dataclass(frozen=True)
class Cell:
    """One element under <root>, with its id/parent/value pulled out."""
    element: etree._Element
    id: str = ''
    parent: str = ''
    value: str = ''

    @classmethod
    def from_element(cls, element):
        return cls(element, **derive_fields(attribute_bag(element)))

    @classmethod
    def placeholder(cls):
        """The bare root pseudo-cell every output document starts with."""
        element = etree.Element(CELL_TAG)
        element.set('id', ROOT_ID)
        return cls(element, id=ROOT_ID)

    def copy(self):
        return replace(self, element=copy.deepcopy(self.element))


@dataclass
class Document:
    """
    A parsed <mxGraphModel>.

    ``attributes`` are the root element's attributes, carried through to the
    output unchanged. Operations never mutate ``cells`` in place; they build a
    new Document with ``with_cells``. ``layers`` is always derived from the
    current cell list.
    """
    attributes: dict = field(default_factory=dict)
    cells: list = field(default_factory=list)

    @property
    def layers(self):
        return build_layers(self.cells)

    def with_cells(self, cells):
        return Document(attributes=dict(self.attributes), cells=list(cells))


# =============================================================================
# Parsing
# =============================================================================

def _local_name(name):
    return etree.QName(name).localname


def attribute_bag(element):
    """
    Return the (name, value) pairs a cell's fields are derived from.

    Plain cells contribute their own attributes. For <object>/<UserObject>
    wrappers the wrapper's attributes come first (``label`` standing in for
    ``value``), followed by the nested <mxCell>'s attributes minus id/value.
    """
    bag = list(element.attrib.items())
    if _local_name(element.tag) not in WRAPPER_TAGS:
        return bag

    bag = [('value', v) if _local_name(k).lower() == 'label' else (k, v) for k, v in bag]
    inner = element.find(CELL_TAG)
    if inner is not None:
        bag.extend(
            (k, v) for k, v in inner.attrib.items()
            if _local_name(k).lower() not in ('id', 'value')
        )
    return bag


def derive_fields(attributes):
    """
    Reduce an attribute bag to the derived ``id``, ``parent`` and ``value``.

    Names are matched case-insensitively on their local part. When the bag
    holds the same name more than once, the last one wins.
    """
    fields = dict.fromkeys(DERIVED_FIELDS, '')
    for name, value in attributes:
        key = _local_name(name).lower()
        if key in fields:
            fields[key] = value
    return fields


def build_layers(cells):
    """One LayerInfo per root-parented cell, in document order."""
    layers = []
    for idx, cell in enumerate(cells):
        if cell.parent == ROOT_ID:
            layers.append(LayerInfo(
                name=cell.value or DEFAULT_LAYER_NAME,
                id=cell.id,
                idx=idx,
            ))
    return layers


def parse_cells(elements):
    """
    Turn raw cell elements into Cells plus the layer projection.

    Returns:
        tuple: (list of Cell, list of LayerInfo)
    """
    cells = [Cell.from_element(element) for element in elements]
    return cells, build_layers(cells)


def parse_document(data):
    """
    Parse plain diagram XML into a Document.

    Args:
        data: bytes or str holding an <mxGraphModel> document

    Raises:
        DiagramParseError: not well-formed, or the root is not <mxGraphModel>
    """
    if isinstance(data, str):
        data = data.encode('utf-8')

    parser = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=True)
    try:
        model = etree.fromstring(data, parser)
    except etree.XMLSyntaxError as e:
        raise DiagramParseError(f"error parsing the draw.io xml: {e}") from e

    if _local_name(model.tag) != MODEL_TAG:
        raise DiagramParseError(
            f"error parsing the draw.io xml: expected <{MODEL_TAG}>, got <{_local_name(model.tag)}>"
        )

    cell_root = model.find('root')
    elements = []
    if cell_root is not None:
        # Skip comments and processing instructions
        elements = [child for child in cell_root if isinstance(child.tag, str)]

    cells, layers = parse_cells(elements)
    logger.debug("Parsed %d cells, %d layers", len(cells), len(layers))
    return Document(attributes=dict(model.attrib), cells=cells)


# =============================================================================
# Serialization
# =============================================================================

def serialize_document(document):
    """
    Serialize a Document back to plain <mxGraphModel> XML (no declaration).

    Returns:
        bytes: UTF-8 encoded XML

    Raises:
        ExportError: the in-memory tree could not be serialized
    """
    try:
        model = etree.Element(MODEL_TAG)
        for name, value in document.attributes.items():
            model.set(name, value)
        root = etree.SubElement(model, 'root')
        for cell in document.cells:
            element = copy.deepcopy(cell.element)
            element.tail = None
            root.append(element)
        return etree.tostring(model, encoding='unicode').encode('utf-8')
    except (etree.LxmlError, TypeError, ValueError) as e:
        raise ExportError(f"error generating the xml for the export: {e}") from e
