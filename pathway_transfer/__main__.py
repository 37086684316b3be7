# pathway_transfer/__main__.py
"""
Command line access to the transfer engine.

    python -m pathway_transfer extract FILE --element ID [--element ID ...] [-o OUT]
    python -m pathway_transfer inspect FILE
"""
import argparse
import logging
import sys

from .core.copy_set import is_synthetic_info
from .core.errors import PathwayTransferError
from .core.gpml_format import read_from_file
from .core.pathway_copier import copy_pathway_elements
from .core.pathway_model import ObjectType
from .services.pathway_transferable import produce
from .utils.config import APP_NAME, APP_VERSION
from .utils.logging_setup import setup_global_logging

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pathway_transfer", description=f"{APP_NAME} {APP_VERSION}")
    parser.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-file", default=None, help="Also write a DEBUG log to this file")
    subparsers = parser.add_subparsers(dest="command", required=True)

    extract = subparsers.add_parser("extract", help="Write the transfer payload for some elements of a GPML file")
    extract.add_argument("file")
    extract.add_argument("--element", "-e", action="append", required=True, dest="element_ids",
                         metavar="ID", help="Id of an element to copy (repeatable)")
    extract.add_argument("--with-info", action="store_true", help="Also copy the metadata element")
    extract.add_argument("--compact", action="store_true", help="Do not indent the payload")
    extract.add_argument("-o", "--output", default=None, help="Output file (default: stdout)")

    inspect = subparsers.add_parser("inspect", help="Summarize a GPML file or payload")
    inspect.add_argument("file")
    return parser


def _extract(args) -> int:
    source = read_from_file(args.file)
    if source is None:
        logger.error(f"'{args.file}' is empty.")
        return 1

    selection = []
    if args.with_info and source.pathway is not None:
        selection.append(source.pathway)
    for element_id in args.element_ids:
        element = source.get_linkable(element_id)
        if element is None:
            logger.error(f"No element with id '{element_id}' in '{args.file}'.")
            return 1
        selection.append(element)

    result = copy_pathway_elements(source, selection)
    payload = produce(result.fragment, pretty_print=not args.compact)
    if payload is None:
        return 1
    if result.report.has_losses:
        logger.warning(f"Copy is incomplete: {result.report.summary()}.")

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(payload)
        logger.info(f"Wrote payload to '{args.output}'.")
    else:
        sys.stdout.write(payload)
    return 0


def _inspect(args) -> int:
    model = read_from_file(args.file)
    if model is None:
        print(f"{args.file}: empty")
        return 0
    title = model.pathway.title if model.pathway else ""
    print(f"{args.file}: '{title}'")
    for object_type in ObjectType:
        if object_type in (ObjectType.PATHWAY, ObjectType.ANCHOR):
            continue
        count = len(model.get_elements(object_type))
        if count:
            print(f"  {object_type.value}: {count}")
    if model.anchors:
        print(f"  Anchor: {len(model.anchors)}")
    if is_synthetic_info(model.pathway):
        print("  metadata: placeholder added by a copy")
    return 0


def main(argv=None) -> int:
    args = _build_parser().parse_args(argv)
    setup_global_logging(args.log_level, args.log_file)
    try:
        if args.command == "extract":
            return _extract(args)
        return _inspect(args)
    except (PathwayTransferError, OSError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
