#!/usr/bin/env python3
"""Render the reflection lobe of an example model.

Usage:
    python examples/render_lobe.py ALIAS [options]

Options:
    --output OUTPUT     Output file path (default: <alias>_lobe.png)
    --resolution N      Image width and height in pixels (default: 256)
    --incoming X Y Z    Incoming direction (default: -1 1 0)
    --tone-map METHOD   none, reinhard or exposure (default: reinhard)

Example:
    python examples/render_lobe.py Phong --incoming -1 0.5 0
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

DEFINITIONS = Path(__file__).parent / "definitions"


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the reflection lobe of an example model.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("alias", help="Alias of an example definition")
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Output file path (default: <alias>_lobe.png)",
    )
    parser.add_argument(
        "--resolution",
        type=int,
        default=256,
        help="Image width and height in pixels (default: 256)",
    )
    parser.add_argument(
        "--incoming",
        type=float,
        nargs=3,
        default=(-1.0, 1.0, 0.0),
        metavar=("X", "Y", "Z"),
        help="Incoming direction (default: -1 1 0)",
    )
    parser.add_argument(
        "--tone-map",
        choices=["none", "reinhard", "exposure"],
        default="reinhard",
        help="Tone mapping method (default: reinhard)",
    )
    return parser.parse_args()


def main() -> int:
    """Main entry point."""
    args = parse_args()

    from brdfkit.config import LibraryConfig
    from brdfkit.library import BRDFLibrary
    from brdfkit.preview import save_lobe_png

    library = BRDFLibrary(LibraryConfig(definitions_dir=DEFINITIONS, verify_on_load=False))
    library.init()

    if args.alias not in library:
        print(f"Error: unknown alias {args.alias!r}; known: {', '.join(library.aliases())}", file=sys.stderr)
        return 1

    output = args.output or Path(f"{args.alias}_lobe.png")
    path = save_lobe_png(
        library.get(args.alias),
        args.incoming,
        output,
        resolution=args.resolution,
        tone_map=args.tone_map,
    )
    print(f"Saved to: {path.absolute()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
