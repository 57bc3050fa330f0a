import argparse
import json
import os
import sys

from assembler import SheetAssembler
from atlas import ATLAS_COLUMNS, ATLAS_ROWS, build_atlas_sets
from errors import CardPressError
from imagecache import ImageCache
from printconfig import (
    CARD_SIZE,
    DEFAULT_DOCUMENT_NAME,
    DEFAULT_WORKERS,
    EXTRA_EMPTY_SHEETS,
    PrintConfig,
    default_groups,
    default_locale,
    load_groups,
)

VERSION = "0.1.0"

if hasattr(sys.stdout, "reconfigure"):
    sys.stdout.reconfigure(encoding="utf-8")
    sys.stderr.reconfigure(encoding="utf-8")


def compile_print_sheets(config, groups, clean=False, stats=None, document_writer=None):
    """Render every group to print sheets and the consolidated PDF."""
    stats = stats if stats is not None else {}
    stats["version"] = VERSION
    stats["locale"] = config.locale
    stats["group_sequence"] = [group.key for group in groups]
    if document_writer is None:
        from pdfdoc import write_document
        document_writer = write_document

    stats["status"] = "processing"
    assembler = SheetAssembler(
        config=config,
        cache=ImageCache(),
        document_writer=document_writer,
        stats=stats,
    )
    sheets = assembler.run(groups, clean=clean)
    stats["status"] = "ok"
    return sheets, stats


def compile_atlases(source_dir, prefix, output_dir, stats=None, **options):
    stats = stats if stats is not None else {}
    stats["version"] = VERSION
    stats["status"] = "processing"
    build_atlas_sets(source_dir, prefix, output_dir, stats=stats, **options)
    stats["status"] = "ok"
    return stats


def run_sheets(args, stats):
    config = PrintConfig(
        page_width_mm=args.page_width_mm,
        page_height_mm=args.page_height_mm,
        dpi=args.dpi,
        gap=args.gap,
        extra_empty_sheets=args.extra_empty_sheets,
        locale=args.locale,
        output_dir=args.output_dir or os.path.join(args.outputs, "print"),
        document_name=args.name,
        workers=args.workers,
    )
    if args.groups:
        groups = load_groups(args.groups)
    else:
        groups = default_groups(args.outputs)
    compile_print_sheets(config, groups, clean=args.clean, stats=stats)


def run_atlas(args, stats):
    compile_atlases(
        args.source_dir,
        args.prefix,
        args.output_dir,
        stats=stats,
        back_prefix=args.back_prefix,
        columns=args.columns,
        rows=args.rows,
        cell_width=args.card_width,
        cell_height=args.card_height,
        locale=(args.locale or "default").lower(),
        workers=args.workers,
    )


def build_parser():
    parser = argparse.ArgumentParser(description="Lay out rendered card images into print sheets and atlases.")
    parser.add_argument("--version", action="version", version=f"cardpress {VERSION}")
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--locale", type=str, default=default_locale(), help="Locale tag (default: $LOCALE or 'default')")
    common.add_argument("--workers", type=int, default=DEFAULT_WORKERS, help="Worker threads per group")
    common.add_argument(
        "--metadata-json",
        type=str,
        default=None,
        help="Write generation metadata to the given JSON file.",
    )
    common.add_argument(
        "--emit-metadata",
        action="store_true",
        help="Emit generation metadata as JSON to stdout.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sheets = sub.add_parser("sheets", parents=[common], help="Build double-sided print sheets and a PDF")
    sheets.add_argument("--groups", type=str, default=None, help="JSON file describing the card groups")
    sheets.add_argument("--outputs", type=str, default="outputs", help="Root of the rendered card folders (default: outputs)")
    sheets.add_argument("--output-dir", type=str, default=None, help="Print output directory (default: <outputs>/print)")
    sheets.add_argument("--name", type=str, default=DEFAULT_DOCUMENT_NAME, help="PDF file name without extension")
    sheets.add_argument("--extra-empty-sheets", type=int, default=EXTRA_EMPTY_SHEETS, help="Blank sheets appended per group")
    sheets.add_argument("--page-width-mm", type=float, default=210.0)
    sheets.add_argument("--page-height-mm", type=float, default=297.0)
    sheets.add_argument("--dpi", type=int, default=300)
    sheets.add_argument("--gap", type=int, default=None, help="Gap between cards in pixels (default: ~2 mm)")
    sheets.add_argument("--clean", action="store_true", help="Remove the print output directory first")
    sheets.set_defaults(handler=run_sheets)

    atlas = sub.add_parser("atlas", parents=[common], help="Pack card images into grid atlases")
    atlas.add_argument("source_dir", type=str, help="Directory with rendered card images")
    atlas.add_argument("--prefix", type=str, required=True, help="Atlas name prefix, e.g. milestone")
    atlas.add_argument("--back-prefix", type=str, default="back-")
    atlas.add_argument("--columns", type=int, default=ATLAS_COLUMNS)
    atlas.add_argument("--rows", type=int, default=ATLAS_ROWS)
    atlas.add_argument("--card-width", type=int, default=CARD_SIZE)
    atlas.add_argument("--card-height", type=int, default=CARD_SIZE)
    atlas.add_argument("--output-dir", type=str, default=os.path.join("outputs", "atlases"))
    atlas.set_defaults(handler=run_atlas)
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    stats = {}
    try:
        args.handler(args, stats)
    except CardPressError as exc:
        print(f"Failed to build {args.command}: {exc}")
        stats["status"] = "error"
        stats["error"] = str(exc)

    if args.metadata_json:
        metadata_dir = os.path.dirname(os.path.abspath(args.metadata_json))
        if metadata_dir:
            os.makedirs(metadata_dir, exist_ok=True)
        with open(args.metadata_json, "w", encoding="utf-8") as fh:
            json.dump(stats, fh, indent=2)
    if args.emit_metadata:
        print(json.dumps(stats, indent=2))

    if stats.get("status") != "ok":
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
