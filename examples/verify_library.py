#!/usr/bin/env python3
"""Load the example definitions and verify every model.

This script loads the ``default`` and ``custom`` definition folders next to
it, verifies each model for reciprocity and energy conservation, and prints
one verdict per model. ``Overbright`` is deliberately non-physical.

Usage:
    python examples/verify_library.py [options]

Options:
    --samples SAMPLES   Outgoing samples per incoming direction (default: 1024)
    --incoming N        Incoming directions per check (default: 4)
    --mode MODE         fixed or convergence (default: fixed)
    --workers N         Verify models in parallel (default: 1)
    --save DIR          Write every definition back to DIR

Example:
    python examples/verify_library.py --samples 4096 --workers 4
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

DEFINITIONS = Path(__file__).parent / "definitions"


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Verify the example BRDF library.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=1024,
        help="Outgoing samples per incoming direction (default: 1024)",
    )
    parser.add_argument(
        "--incoming",
        type=int,
        default=4,
        help="Incoming directions per check (default: 4)",
    )
    parser.add_argument(
        "--mode",
        choices=["fixed", "convergence"],
        default="fixed",
        help="Energy conservation check (default: fixed)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Verify models in parallel (default: 1)",
    )
    parser.add_argument(
        "--save",
        type=Path,
        default=None,
        help="Write every definition back to this directory",
    )
    return parser.parse_args()


def main() -> int:
    """Main entry point."""
    args = parse_args()
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    from brdfkit.config import LibraryConfig, VerifierConfig
    from brdfkit.library import BRDFLibrary
    from brdfkit.verify import MemorySink, PlausibilityVerifier

    library = BRDFLibrary(LibraryConfig(definitions_dir=DEFINITIONS, verify_on_load=False))
    library.init()
    print(f"Loaded {len(library)} models from {DEFINITIONS}")
    for key, message in library.errors.items():
        print(f"  {key}: {message}")

    sink = MemorySink()
    verifier = PlausibilityVerifier(VerifierConfig(num_incoming=args.incoming, samples_per_test=args.samples), sink)

    start_time = time.time()
    results = library.verify_all(verifier, mode=args.mode, max_workers=args.workers)
    for result in results.values():
        print(f"  {result.summary()}")
    print(f"Verified in {time.time() - start_time:.2f}s ({len(sink.records)} diagnostic records)")

    if args.save is not None:
        for alias in library.aliases():
            library.save(alias, args.save)
        print(f"Saved definitions to: {args.save.absolute()}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
