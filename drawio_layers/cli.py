"""
CLI for drawio-layers.

Usage:
    drawio-layers show layers -f diagram.drawio
    drawio-layers delete layer -f diagram.drawio -n "Notes" -o out.xml
    drawio-layers export layer -f diagram.drawio -n "Network" -o network.xml
    drawio-layers merge -f base.drawio -m overlay.drawio -o merged.xml
    drawio-layers classify draft -f diagram.drawio -o draft.xml
    drawio-layers unpack -f diagram.drawio [-o plain.xml] [-p 1]
    drawio-layers version
"""

import sys
import logging
import argparse
import configparser

from . import __version__
from .app import (
    App,
    ClassifyOptions,
    DeleteLayerOptions,
    ExtractLayerOptions,
    MergeOptions,
    ShowLayersOptions,
    UnpackFileOptions,
)
from .config import Settings
from .errors import DrawioLayersError, OptionsError
from .layers import load_watermark

logger = logging.getLogger(__name__)

OUTPUT_HELP = 'output file and path name [default from settings, export.xml]'
FILE_HELP = 'draw.io model to import'


# =============================================================================
# Command handlers
# =============================================================================

def run_show_layers(app, opts):
    layers = app.show_layers(opts)
    print("Following layers are found")
    for layer in layers:
        print(f"Name: {layer.name} - ID: {layer.id}")


def run_delete_layer(app, opts):
    output = app.delete_layer(opts)
    print(f"saved data to file: {output}")
    print(f"Removed layer: {opts.layer_name} from drawing")


def run_extract_layer(app, opts):
    output = app.extract_layer(opts)
    print(f"saved data to file: {output}")
    print(f"Extracted layer: {opts.layer_name} successful into a new file: {output}")


def run_merge(app, opts):
    output = app.merge(opts)
    print(f"saved data to file: {output}")


def run_classify(app, opts):
    output = app.classify(opts)
    print(f"saved data to file: {output}")


def run_unpack(app, opts):
    data = app.unpack_file(opts)
    if not opts.output_filename:
        print(data.decode('utf-8'))


# =============================================================================
# Parser
# =============================================================================

def _add_file(parser):
    parser.add_argument('-f', '--file', dest='filename', default='', help=FILE_HELP)


def _add_output(parser, help_text=OUTPUT_HELP):
    parser.add_argument('-o', '--output', dest='output_filename', default='', help=help_text)


def build_parser():
    parser = argparse.ArgumentParser(
        prog='drawio-layers',
        description='Extract, delete, merge and watermark layers of draw.io diagrams'
    )
    parser.add_argument(
        '--config',
        help='Path to settings.ini file'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable debug logging'
    )
    commands = parser.add_subparsers(dest='command', metavar='command')
    commands.required = True

    # show layers
    show = commands.add_parser('show', help='shows resources')
    show_sub = show.add_subparsers(dest='resource', metavar='resource')
    show_sub.required = True
    show_layers = show_sub.add_parser('layers', help='displays all available layers')
    _add_file(show_layers)
    show_layers.set_defaults(
        make_options=lambda a: ShowLayersOptions(filename=a.filename),
        run=run_show_layers,
    )

    # delete layer
    delete = commands.add_parser('delete', help='deletes resources')
    delete_sub = delete.add_subparsers(dest='resource', metavar='resource')
    delete_sub.required = True
    delete_layer = delete_sub.add_parser('layer', help='deletes a layer by name')
    _add_file(delete_layer)
    delete_layer.add_argument('-n', '--name', dest='layer_name', default='',
                              help='the layer name to delete from file')
    _add_output(delete_layer)
    delete_layer.set_defaults(
        make_options=lambda a: DeleteLayerOptions(
            filename=a.filename, layer_name=a.layer_name, output_filename=a.output_filename
        ),
        run=run_delete_layer,
    )

    # export layer
    export = commands.add_parser('export', help='exports a resource')
    export_sub = export.add_subparsers(dest='resource', metavar='resource')
    export_sub.required = True
    export_layer = export_sub.add_parser('layer', help='exports a layer by name')
    _add_file(export_layer)
    export_layer.add_argument('-n', '--name', dest='layer_name', default='',
                              help='the layer name to extract into a new file')
    _add_output(export_layer)
    export_layer.set_defaults(
        make_options=lambda a: ExtractLayerOptions(
            filename=a.filename, layer_name=a.layer_name, output_filename=a.output_filename
        ),
        run=run_extract_layer,
    )

    # merge
    merge = commands.add_parser('merge', help='merges another drawing onto the imported file')
    _add_file(merge)
    merge.add_argument('-m', '--merge-file', dest='merge_filename', default='',
                       help='the file to be merged onto the imported file')
    _add_output(merge)
    merge.set_defaults(
        make_options=lambda a: MergeOptions(
            filename=a.filename, merge_filename=a.merge_filename, output_filename=a.output_filename
        ),
        run=run_merge,
    )

    # classify draft
    classify = commands.add_parser('classify', help='classifies a drawing with a watermark')
    classify_sub = classify.add_subparsers(dest='classification', metavar='classification')
    classify_sub.required = True
    draft = classify_sub.add_parser('draft', help='classifies the document as draft')
    _add_file(draft)
    _add_output(draft)
    draft.set_defaults(
        make_options=lambda a: ClassifyOptions(
            filename=a.filename, output_filename=a.output_filename
        ),
        run=run_classify,
    )

    # unpack
    unpack = commands.add_parser('unpack', help='unpacks mxfiles and extracts the raw xml')
    _add_file(unpack)
    _add_output(unpack, 'output file and path name. If not provided it will be printed to the console')
    unpack.add_argument('-p', '--page', type=int, default=0,
                        help='index of the diagram page to unpack (default: 0)')
    unpack.set_defaults(
        make_options=lambda a: UnpackFileOptions(
            filename=a.filename, output_filename=a.output_filename, page=a.page
        ),
        run=run_unpack,
    )

    # version
    version = commands.add_parser('version', help='shows version information')
    version.set_defaults(make_options=None, run=None)

    return parser


def setup_logging(level):
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == 'version':
        print(f"drawio-layers {__version__}")
        return 0

    # Load settings
    try:
        settings = Settings.reload(args.config) if args.config else Settings.get()
    except (FileNotFoundError, configparser.Error, ValueError) as e:
        print(f"Error: {e}")
        return 1

    setup_logging(logging.DEBUG if args.verbose else settings['log_level'])
    if settings['settings_path']:
        logger.debug("Using config file: %s", settings['settings_path'])

    # Options are checked before any file is read
    opts = args.make_options(args)
    try:
        if isinstance(opts, (ShowLayersOptions, UnpackFileOptions)):
            opts.validate()
        else:
            opts.validate(settings['output_filename'])
    except OptionsError as e:
        print(f"Error: {e}")
        return 1

    try:
        watermark = load_watermark(settings['watermark_template'])
        app = App(watermark=watermark, output_filename=settings['output_filename'])
        args.run(app, opts)
    except DrawioLayersError as e:
        if e.__cause__ is not None:
            logger.debug("Caused by: %r", e.__cause__)
        print(f"Error: {e}")
        return 1
    except OSError as e:
        print(f"Error: {e}")
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
