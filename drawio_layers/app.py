"""
drawio-layers application layer.

Each operation loads a diagram, transforms its cell list and writes the
result. The loaded Document is passed explicitly from step to step:

    document = app.import_drawing(path)
    document = app.remove_layer_by_name(document, 'Notes')
    app.write_document(document, 'export.xml')
"""

import logging
from dataclasses import dataclass

from .config import DEFAULT_OUTPUT_FILENAME
from .drawio_tools import decode_mxfile, is_mxfile
from .errors import (
    DecodeError,
    ExportError,
    ImportFailedError,
    LayerNotFoundError,
    NoFileError,
    NoLayerNameError,
    NoLayersFoundError,
    NoMergeFileError,
    NoOptionsError,
    NotAnMxFileError,
)
from .layers import (
    keep_elements_with_id,
    layer_id,
    load_watermark,
    merge_cells,
    remove_elements_with_id,
)
from .model import parse_document, serialize_document

logger = logging.getLogger(__name__)


# =============================================================================
# Options
# =============================================================================

@dataclass
class ShowLayersOptions:
    filename: str = ''

    def validate(self):
        if not self.filename:
            raise NoFileError()


@dataclass
class DeleteLayerOptions:
    filename: str = ''
    layer_name: str = ''
    output_filename: str = ''

    def validate(self, default_output=DEFAULT_OUTPUT_FILENAME):
        if not self.filename:
            raise NoFileError()
        if not self.output_filename:
            self.output_filename = default_output
        if not self.layer_name:
            raise NoLayerNameError()


@dataclass
class ExtractLayerOptions:
    filename: str = ''
    layer_name: str = ''
    output_filename: str = ''

    def validate(self, default_output=DEFAULT_OUTPUT_FILENAME):
        if not self.filename:
            raise NoFileError()
        if not self.output_filename:
            self.output_filename = default_output
        if not self.layer_name:
            raise NoLayerNameError()


@dataclass
class MergeOptions:
    filename: str = ''
    merge_filename: str = ''
    output_filename: str = ''

    def validate(self, default_output=DEFAULT_OUTPUT_FILENAME):
        if not self.filename:
            raise NoFileError()
        if not self.merge_filename:
            raise NoMergeFileError()
        if not self.output_filename:
            self.output_filename = default_output


@dataclass
class ClassifyOptions:
    filename: str = ''
    output_filename: str = ''

    def validate(self, default_output=DEFAULT_OUTPUT_FILENAME):
        if not self.filename:
            raise NoFileError()
        if not self.output_filename:
            self.output_filename = default_output


@dataclass
class UnpackFileOptions:
    """``output_filename`` stays empty when the XML should go to stdout."""
    filename: str = ''
    output_filename: str = ''
    page: int = 0

    def validate(self):
        if not self.filename:
            raise NoFileError()


# =============================================================================
# Application
# =============================================================================

def read_file(filename):
    try:
        with open(filename, 'rb') as f:
            return f.read()
    except OSError as e:
        logger.debug("Could not read %s: %s", filename, e)
        raise ImportFailedError(f"error importing the draw.io file {filename}: {e}") from e


class App:
    """
    Runs layer operations against draw.io files.

    The watermark template used by ``classify`` is loaded once, here, and is
    shared read-only by every call.
    """

    def __init__(self, watermark=None, output_filename=DEFAULT_OUTPUT_FILENAME):
        self.watermark = watermark if watermark is not None else load_watermark()
        self.output_filename = output_filename

    # -------------------------------------------------------------------------
    # Load / persist
    # -------------------------------------------------------------------------

    def import_drawing(self, filename):
        """
        Read a draw.io file and parse it into a Document.

        Compressed <mxfile> wrappers are unwrapped first.

        Raises:
            ImportFailedError: unreadable file or undecodable wrapper
            DiagramParseError: the (unwrapped) XML is not an <mxGraphModel>
        """
        data = read_file(filename)

        if is_mxfile(data):
            logger.debug("%s is an mxfile, decoding", filename)
            try:
                data = decode_mxfile(data)
            except DecodeError as e:
                logger.debug("Decoding %s failed: %s: %s", filename, type(e).__name__, e)
                raise ImportFailedError(f"error importing the draw.io file {filename}: {e}") from e

        return parse_document(data)

    def write_document(self, document, filename):
        """Serialize a Document and write it to ``filename``."""
        data = serialize_document(document)
        try:
            with open(filename, 'wb') as f:
                f.write(data)
        except OSError as e:
            raise ExportError(f"error writing {filename}: {e}") from e
        logger.info("Saved %d cells to %s", len(document.cells), filename)
        return filename

    # -------------------------------------------------------------------------
    # Layer lookups and transforms
    # -------------------------------------------------------------------------

    def layers(self, document):
        """Return the document's layers; raises NoLayersFoundError if there are none."""
        if not document.layers:
            raise NoLayersFoundError()
        return document.layers

    def find_layer_id(self, document, name):
        if not name:
            raise NoLayerNameError()
        found = layer_id(self.layers(document), name)
        if found is None:
            raise LayerNotFoundError(name)
        return found

    def remove_layer_by_name(self, document, name):
        cells = remove_elements_with_id(document.cells, self.find_layer_id(document, name))
        return document.with_cells(cells)

    def extract_layer_by_name(self, document, name):
        cells = keep_elements_with_id(document.cells, self.find_layer_id(document, name))
        return document.with_cells(cells)

    def merge_documents(self, document, other):
        return document.with_cells(merge_cells(document.cells, other.cells))

    def classify_document(self, document):
        return document.with_cells(self.watermark.apply(document.cells))

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def show_layers(self, opts):
        """Return the (name, id) layers of a file, in document order."""
        if opts is None:
            raise NoOptionsError()
        document = self.import_drawing(opts.filename)
        return self.layers(document)

    def delete_layer(self, opts):
        """Remove a layer and its direct children, write the rest."""
        if opts is None:
            raise NoOptionsError()
        document = self.import_drawing(opts.filename)
        document = self.remove_layer_by_name(document, opts.layer_name)
        return self.write_document(document, opts.output_filename or self.output_filename)

    def extract_layer(self, opts):
        """Write a new file holding only one layer and its direct children."""
        if opts is None:
            raise NoOptionsError()
        document = self.import_drawing(opts.filename)
        document = self.extract_layer_by_name(document, opts.layer_name)
        return self.write_document(document, opts.output_filename or self.output_filename)

    def merge(self, opts):
        """Append every cell of the merge file onto the imported file."""
        if opts is None:
            raise NoOptionsError()
        document = self.import_drawing(opts.filename)
        other = self.import_drawing(opts.merge_filename)
        document = self.merge_documents(document, other)
        return self.write_document(document, opts.output_filename or self.output_filename)

    def classify(self, opts):
        """Mark a document as draft by appending the watermark cells."""
        if opts is None:
            raise NoOptionsError()
        document = self.import_drawing(opts.filename)
        document = self.classify_document(document)
        return self.write_document(document, opts.output_filename or self.output_filename)

    def unpack_file(self, opts):
        """
        Decode an mxfile into plain diagram XML.

        Writes the XML to ``opts.output_filename`` when it is set. The
        decoded bytes are returned either way.
        """
        if opts is None:
            raise NoOptionsError()

        data = read_file(opts.filename)
        if not is_mxfile(data):
            raise NotAnMxFileError(f"file is not an mxfile: {opts.filename}")

        try:
            data = decode_mxfile(data, page=opts.page)
        except DecodeError as e:
            logger.debug("Decoding %s failed: %s: %s", opts.filename, type(e).__name__, e)
            raise ImportFailedError(f"error importing the draw.io file {opts.filename}: {e}") from e

        if opts.output_filename:
            try:
                with open(opts.output_filename, 'wb') as f:
                    f.write(data)
            except OSError as e:
                raise ExportError(f"error writing {opts.output_filename}: {e}") from e
            logger.info("Unpacked %s to %s", opts.filename, opts.output_filename)

        return data
