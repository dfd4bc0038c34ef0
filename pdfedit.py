#!/usr/bin/env python3
"""
PDF overlay editor: headless CLI entry point.

Imports a PDF as editable page rasters, replaces text under given canvas
click positions with overlay text (masking the original glyphs), and
exports the result as a new multi-page PDF.

Usage::

    python pdfedit.py input.pdf output.pdf
    python pdfedit.py form.pdf filled.pdf --replace "120,340=Jane Doe"
    python pdfedit.py report.pdf out.pdf --replace "2:80,96=Revised title" -v 2

Click positions are canvas pixels (origin top-left) at the canvas width
(default 595).  Prefix ``PAGE:`` selects a 1-based page.

Verbosity levels::

    -v 0   Quiet: warnings and errors only.
    -v 1   Normal: progress bars and summaries (default).
    -v 2   Debug: every detection, remask, and page decision.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import NamedTuple

from core.errors import EditorError, ExportError, ImportFailure
from editor import EditorConfig, EditorSession

logger = logging.getLogger("editor")

# Mapping from --verbose integer to logging level
_VERBOSITY_MAP = {
    0: logging.WARNING,
    1: logging.INFO,
    2: logging.DEBUG,
}


class Replacement(NamedTuple):
    page_index: int
    x: float
    y: float
    text: str


# ------------------------------------------------------------------
# Argument parsing
# ------------------------------------------------------------------


def _parse_replacement(value: str) -> Replacement:
    """
    Parse ``[PAGE:]X,Y=TEXT`` into a :class:`Replacement` with a 0-based page.

    Raises:
        argparse.ArgumentTypeError: On malformed input.
    """
    target, sep, text = value.partition("=")
    if not sep:
        raise argparse.ArgumentTypeError(
            f"Invalid replacement '{value}'. Use [PAGE:]X,Y=TEXT."
        )

    page_part, colon, coords = target.rpartition(":")
    try:
        page = int(page_part) if colon else 1
        x_str, y_str = coords.split(",")
        x, y = float(x_str), float(y_str)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Invalid replacement '{value}'. Use [PAGE:]X,Y=TEXT."
        )
    if page < 1:
        raise argparse.ArgumentTypeError(
            f"Invalid page in '{value}'. Pages are 1-based."
        )
    return Replacement(page - 1, x, y, text)


def _build_parser() -> argparse.ArgumentParser:
    """Construct the argument parser."""
    p = argparse.ArgumentParser(
        description="Replace text in a PDF with editable overlays and re-export it.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "examples:\n"
            "  python pdfedit.py in.pdf out.pdf\n"
            '  python pdfedit.py in.pdf out.pdf --replace "120,340=Jane Doe"\n'
            '  python pdfedit.py in.pdf out.pdf --replace "2:80,96=Title" -v 2\n'
        ),
    )

    p.add_argument("input", help="Path to the input PDF file")
    p.add_argument("output", help="Path of the PDF to write")

    # -- Editing -----------------------------------------------------------
    edit = p.add_argument_group("editing")
    edit.add_argument(
        "--replace",
        type=_parse_replacement,
        action="append",
        default=[],
        metavar="[PAGE:]X,Y=TEXT",
        help="Replace the text nearest canvas point X,Y (repeatable)",
    )
    edit.add_argument(
        "--highlight",
        action="store_true",
        help="Highlight replaced text",
    )

    # -- Canvas ------------------------------------------------------------
    canvas = p.add_argument_group("canvas")
    canvas.add_argument(
        "--width",
        type=int,
        default=595,
        metavar="PX",
        help="Canvas width in pixels (default: 595)",
    )
    canvas.add_argument(
        "--snapshot-scale",
        type=float,
        default=2.0,
        metavar="FLOAT",
        help="Resolution multiplier for exported page images (default: 2.0)",
    )

    # -- Output control ----------------------------------------------------
    debug = p.add_argument_group("output control")
    debug.add_argument(
        "-v",
        "--verbose",
        type=int,
        choices=[0, 1, 2],
        default=1,
        help="Verbosity: 0=quiet, 1=normal (default), 2=debug",
    )
    debug.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable tqdm progress bars",
    )

    return p


# ------------------------------------------------------------------
# Logging setup
# ------------------------------------------------------------------


def _configure_logging(verbosity: int) -> None:
    """Set up the ``editor`` and ``core`` loggers."""
    level = _VERBOSITY_MAP.get(verbosity, logging.INFO)

    if level <= logging.DEBUG:
        fmt = "%(asctime)s %(name)s %(levelname)s: %(message)s"
        datefmt = "%H:%M:%S"
    elif level <= logging.INFO:
        fmt = "%(message)s"
        datefmt = None
    else:
        fmt = "%(levelname)s: %(message)s"
        datefmt = None

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    for name in ("editor", "core"):
        root = logging.getLogger(name)
        root.setLevel(level)
        root.handlers.clear()
        root.addHandler(handler)

    logging.getLogger("PIL").setLevel(logging.WARNING)


# ------------------------------------------------------------------
# Run
# ------------------------------------------------------------------


async def _run(args: argparse.Namespace, config: EditorConfig) -> int:
    session = EditorSession(config)
    try:
        await session.import_file(args.input)

        replaced = 0
        for rep in args.replace:
            if rep.page_index >= session.store.page_count:
                logger.warning(
                    "Page %d does not exist; skipping '%s'", rep.page_index + 1, rep.text
                )
                continue

            element = await session.detect_text(rep.x, rep.y, page_index=rep.page_index)
            if element is None:
                logger.warning(
                    "No text near (%.0f, %.0f) on page %d",
                    rep.x,
                    rep.y,
                    rep.page_index + 1,
                )
                continue

            logger.info("  '%s' -> '%s'", element.content, rep.text)
            if args.highlight:
                session.update_element(element.id, {"highlight": True})
            session.edit_text(rep.text)
            session.complete_edit()
            replaced += 1

        await session.flush()
        out = await session.export_to(args.output)
        logger.info("Replaced %d / %d text runs, wrote %s", replaced, len(args.replace), out)
        return 0

    except ImportFailure as e:
        logger.error("Import failed: %s", e)
        return 1
    except ExportError as e:
        logger.error("Export failed: %s", e)
        return 1
    except EditorError as e:
        logger.error("%s", e)
        return 1
    finally:
        await session.close()


# ------------------------------------------------------------------
# Entry point
# ------------------------------------------------------------------


def main():
    """Parse arguments, configure logging, and run the editor headlessly."""
    parser = _build_parser()
    args = parser.parse_args()

    _configure_logging(args.verbose)

    input_path = Path(args.input)
    if not input_path.exists():
        parser.error(f"Input file not found: {input_path}")
    if args.width < 1:
        parser.error("--width must be a positive number of pixels")

    config = EditorConfig(
        canvas_width=args.width,
        snapshot_scale=args.snapshot_scale,
        disable_tqdm=args.no_progress or args.verbose == 0,
    )

    logger.info("PDF overlay editor")
    logger.info("  Input:  %s", input_path)
    logger.info("  Output: %s", args.output)
    if args.replace:
        logger.info("  Edits:  %d", len(args.replace))

    sys.exit(asyncio.run(_run(args, config)))


if __name__ == "__main__":
    main()
