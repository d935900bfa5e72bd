"""
Command line front end.

Usage:
    inpaint adaptive <source> <mask> <output>
    inpaint exemplar <patch radius> <source> <mask> <output>

The mask marks damaged pixels through its alpha channel.
"""

import argparse
import sys
import time
from typing import List, Optional

from adaptive import AdaptiveInpainter
from image_io import load_mask, load_rgba, save_rgba
from inpainter import ExemplarInpainter, InpaintError, InpaintIncompleteError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="inpaint",
                                     description="Fill the damaged region of an image")
    sub = parser.add_subparsers(dest="command", metavar="{adaptive,exemplar}", required=True)

    adaptive = sub.add_parser("adaptive", aliases=["a"], help="Fast local mean interpolation")
    adaptive.set_defaults(method="adaptive")

    exemplar = sub.add_parser("exemplar", aliases=["e"], help="Patch propagation (slow, keeps structure)")
    exemplar.set_defaults(method="exemplar")
    exemplar.add_argument("radius", type=int, help="Patch radius in pixels")
    exemplar.add_argument("--max-passes", type=int, default=None,
                          help="Stop after this many passes")
    exemplar.add_argument("--save-partial", action="store_true",
                          help="Write the partial result if the pass limit is hit")

    for p in (adaptive, exemplar):
        p.add_argument("source", help="Source image")
        p.add_argument("mask", help="Mask image (alpha != 0 means damaged)")
        p.add_argument("output", help="Output image")
        p.add_argument("--quiet", "-q", action="store_true", help="Less progress output")

    return parser


def run(args: argparse.Namespace) -> int:
    source = load_rgba(args.source)
    mask = load_mask(args.mask)

    start_time = time.time()
    if args.method == "adaptive":
        result = AdaptiveInpainter(verbose=not args.quiet).inpaint(source, mask)
    else:
        inpainter = ExemplarInpainter(patch_radius=args.radius, max_passes=args.max_passes,
                                      verbose=not args.quiet)
        try:
            result = inpainter.inpaint(source, mask)
        except InpaintIncompleteError as e:
            if args.save_partial:
                save_rgba(args.output, e.image)
                print(f"[INPAINT] Partial result written to {args.output}")
            raise

    save_rgba(args.output, result)
    print(f"[INPAINT] Done in {time.time() - start_time:.2f}s -> {args.output}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return run(args)
    except (InpaintError, FileNotFoundError) as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
