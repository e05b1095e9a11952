"""
Layer operations on a diagram's cell list.

All functions return new lists and leave their input untouched.
"""

import logging
from pathlib import Path

from lxml import etree

from .errors import NoCellsError, NoIDError, DiagramParseError
from .model import Cell, RESERVED_IDS, parse_cells

logger = logging.getLogger(__name__)

DEFAULT_WATERMARK = Path(__file__).parent / 'templates' / 'draft.xml'


def _check_cells_and_id(cells, cell_id):
    if not cells:
        raise NoCellsError()
    if not cell_id:
        raise NoIDError()


def keep_elements_with_id(cells, cell_id):
    """
    Keep the cell ``cell_id`` and the cells directly parented to it.

    Only one level is matched: grandchildren of the layer (cells inside a
    group inside the layer) are not carried over.

    Returns:
        list: a bare root cell followed by the matching cells, in order
    """
    _check_cells_and_id(cells, cell_id)

    kept = [Cell.placeholder()]
    kept.extend(c for c in cells if c.id == cell_id or c.parent == cell_id)
    return kept


def remove_elements_with_id(cells, cell_id):
    """
    Drop the cell ``cell_id`` and the cells directly parented to it.

    Returns:
        list: a bare root cell followed by every other cell, in order
    """
    _check_cells_and_id(cells, cell_id)

    kept = [Cell.placeholder()]
    kept.extend(c for c in cells if c.id != cell_id and c.parent != cell_id)
    return kept


def find_and_delete(cells, cell_id):
    """Return the cells whose id is not ``cell_id``."""
    return [c for c in cells if c.id != cell_id]


def merge_cells(cells, other_cells):
    """
    Append the cells of another diagram after ``cells``.

    The other diagram's root and default-layer cells ("0" and "1") are left
    out. Other ids are not checked for collisions.
    """
    for reserved in RESERVED_IDS:
        other_cells = find_and_delete(other_cells, reserved)
    return list(cells) + list(other_cells)


def layer_id(layers, name):
    """Return the id of the first layer called ``name``, or None."""
    for layer in layers:
        if layer.name == name:
            return layer.id
    return None


# =============================================================================
# Classification watermark
# =============================================================================

class WatermarkTemplate:
    """
    A fixed set of cells appended to a diagram to mark its classification.

    The template is parsed once and never modified; every ``apply`` appends
    fresh copies. Applying it twice appends the cells twice.
    """

    def __init__(self, cells, source=None):
        self._cells = tuple(cells)
        self.source = source

    @property
    def cells(self):
        return self._cells

    def apply(self, cells):
        return list(cells) + [c.copy() for c in self._cells]


def load_watermark(path=None):
    """
    Load a watermark template file.

    The file holds a single element whose element children are the cells to
    append, e.g. ``<root><mxCell .../></root>``.
    """
    path = Path(path) if path else DEFAULT_WATERMARK
    logger.debug("Loading watermark template from %s", path)

    parser = etree.XMLParser(
        resolve_entities=False, no_network=True, huge_tree=True, remove_blank_text=True
    )
    try:
        root = etree.parse(str(path), parser).getroot()
    except etree.XMLSyntaxError as e:
        raise DiagramParseError(f"invalid watermark template {path}: {e}") from e

    elements = [child for child in root if isinstance(child.tag, str)]
    cells, _ = parse_cells(elements)
    return WatermarkTemplate(cells, source=str(path))
