"""Command line interface: lay out outlines and inspect saved mind maps."""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .errors import CorruptData, WriteError
from .layout import MindMapLayout
from .measure import TextMeasurer
from .models import Viewport
from .overlap import OverlapResolver
from .parser import ParseError, parse_outline, to_outline
from .storage import JsonFileStorage, build_blob, parse_blob
from .viewport import to_screen

logger = logging.getLogger(__name__)


def _parse_size(value: str):
    try:
        width, height = value.lower().split("x")
        return float(width), float(height)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"expected WIDTHxHEIGHT, got {value!r}"
        ) from None


def _cmd_layout(args: argparse.Namespace) -> int:
    try:
        tree = parse_outline(Path(args.outline).read_text(encoding="utf-8"))
    except (OSError, ParseError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    measurer = TextMeasurer(font_size=args.font_size) if args.measure_text else None
    engine = MindMapLayout(resolver=OverlapResolver(measurer=measurer))
    result = engine.layout(tree)

    rows = []
    for node in tree:
        x, y = node.x, node.y
        if args.screen:
            width, height = args.screen
            x, y = to_screen(x, y, Viewport(), (width / 2, height / 2))
        side = result.nodes[node.id].side
        rows.append(
            {
                "id": node.id,
                "level": node.level,
                "side": side.name.lower() if side else "root",
                "x": round(x, 2),
                "y": round(y, 2),
                "text": node.text,
            }
        )

    if args.json:
        print(json.dumps(rows, indent=2, ensure_ascii=False))
    else:
        for row in rows:
            print(
                f"{row['id']:>4} L{row['level']} {row['side']:<5} "
                f"{row['x']:>9.1f} {row['y']:>9.1f}  {row['text']}"
            )

    if args.trace:
        print(result.trace.summary(), file=sys.stderr)

    if args.save:
        try:
            JsonFileStorage(args.save).save(build_blob(tree, Viewport()))
        except WriteError as e:
            print(f"error: {e}", file=sys.stderr)
            return 1
        logger.debug("Saved laid out state to %s", args.save)
    return 0 if result.trace.converged else 2


def _cmd_outline(args: argparse.Namespace) -> int:
    blob = JsonFileStorage(args.state).load()
    if blob is None:
        print(f"error: no saved state in {args.state}", file=sys.stderr)
        return 1
    try:
        tree, _ = parse_blob(blob)
    except CorruptData as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    sys.stdout.write(to_outline(tree))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="mindlayout")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log layout passes"
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_lay = sub.add_parser("layout", help="Lay out an outline file")
    p_lay.add_argument("outline", help="Indented outline text file")
    p_lay.add_argument("--json", action="store_true", help="Print JSON rows")
    p_lay.add_argument(
        "--screen",
        type=_parse_size,
        metavar="WxH",
        help="Print screen coordinates for a surface of this size",
    )
    p_lay.add_argument(
        "--measure-text",
        action="store_true",
        help="Size boxes from font metrics instead of the fixed estimate",
    )
    p_lay.add_argument("--font-size", type=int, default=16)
    p_lay.add_argument(
        "--trace", action="store_true", help="Print the layout trace to stderr"
    )
    p_lay.add_argument("--save", help="Also write the laid out state to this file")
    p_lay.set_defaults(func=_cmd_layout)

    p_out = sub.add_parser("outline", help="Print a saved state file as an outline")
    p_out.add_argument("state", help="State file written by --save or a session")
    p_out.set_defaults(func=_cmd_outline)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
