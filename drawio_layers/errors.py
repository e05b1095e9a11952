"""
Exceptions for drawio-layers.
"""


class DrawioLayersError(Exception):
    """Base exception for all drawio-layers errors."""
    pass


# =============================================================================
# Option validation (raised before any file is touched)
# =============================================================================

class OptionsError(DrawioLayersError):
    """Raised when required command options are missing."""
    pass


class NoOptionsError(OptionsError):
    def __init__(self):
        super().__init__("options are missing, please provide the required options")


class NoFileError(OptionsError):
    def __init__(self):
        super().__init__("required file is not present, please provide a draw.io file")


class NoLayerNameError(OptionsError):
    def __init__(self):
        super().__init__("please provide a layer name")


class NoMergeFileError(OptionsError):
    def __init__(self):
        super().__init__("please provide a file to be merged")


# =============================================================================
# Import / decode
# =============================================================================

class ImportFailedError(DrawioLayersError):
    """Raised when a draw.io file could not be read or unwrapped."""
    pass


class DecodeError(DrawioLayersError):
    """Raised when a compressed mxfile payload cannot be decoded."""
    pass


class WrapperFormatError(DecodeError):
    """The mxfile wrapper is not well-formed or has no usable <diagram>."""
    pass


class Base64DecodeError(DecodeError):
    pass


class InflateError(DecodeError):
    pass


class PercentDecodeError(DecodeError):
    pass


class NotAnMxFileError(DrawioLayersError):
    """Raised when unpacking a file that is not an mxfile."""
    pass


class DiagramParseError(DrawioLayersError):
    """Raised when the diagram bytes are not a valid <mxGraphModel>."""
    pass


# =============================================================================
# Layer operations
# =============================================================================

class LayerError(DrawioLayersError):
    """Raised when a layer operation cannot be carried out."""
    pass


class NoLayersFoundError(LayerError):
    def __init__(self):
        super().__init__("no layers found")


class LayerNotFoundError(LayerError):
    def __init__(self, name):
        self.name = name
        super().__init__(f"layer not found: {name}")


class NoCellsError(LayerError):
    def __init__(self):
        super().__init__("cells are empty and should have a value")


class NoIDError(LayerError):
    def __init__(self):
        super().__init__("id is empty and should have a value")


class ExportError(DrawioLayersError):
    """Raised when the diagram could not be serialized or written."""
    pass
