"""Command line interface.

Usage:
    brdfkit [--config FILE] [-v] verify [PATHS ...] [options]
    brdfkit [--config FILE] [-v] show ALIAS [-d PATH ...]
    brdfkit [--config FILE] [-v] lobe ALIAS --output lobe.png [options]

PATHS (and ``-d``) are definition files or folders. Without them the folders
configured under ``[library]`` are loaded.

Example:
    brdfkit verify examples/definitions/default --samples 4096 --incoming 4
    brdfkit lobe Plastic -d examples/definitions/default --output plastic.png
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from brdfkit import __version__
from brdfkit.config import EnergyMode, Settings, load_settings
from brdfkit.errors import DefinitionFormatError
from brdfkit.library.manager import BRDFLibrary
from brdfkit.preview.display import TONE_MAP_METHODS
from brdfkit.preview.export import save_lobe_png
from brdfkit.verify.diagnostics import CSVSink, LoggingSink
from brdfkit.verify.verifier import PlausibilityVerifier

LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="brdfkit",
        description="Verify and preview BRDF reflectance models.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="TOML configuration file",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log output (-v info, -vv debug)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    verify = sub.add_parser("verify", help="Check definitions for physical plausibility")
    verify.add_argument("paths", nargs="*", type=Path, help="Definition files or folders")
    verify.add_argument(
        "--incoming",
        type=int,
        default=None,
        help="Incoming directions per check (default: from config, 1)",
    )
    verify.add_argument(
        "--samples",
        type=int,
        default=None,
        help="Outgoing samples per incoming direction (default: from config, 1024)",
    )
    verify.add_argument(
        "--mode",
        choices=[m.value for m in EnergyMode],
        default=None,
        help="Energy conservation check (default: from config, fixed)",
    )
    verify.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Verify models in parallel with this many threads",
    )
    verify.add_argument(
        "--diagnostics",
        type=Path,
        default=None,
        help="Write verifier records to this CSV file",
    )

    show = sub.add_parser("show", help="Print a model's parameters and definition")
    show.add_argument("alias", help="Model alias")
    show.add_argument("-d", "--definitions", action="append", type=Path, default=[], help="Definition file or folder")

    lobe = sub.add_parser("lobe", help="Render a model's reflection lobe to PNG")
    lobe.add_argument("alias", help="Model alias")
    lobe.add_argument("-d", "--definitions", action="append", type=Path, default=[], help="Definition file or folder")
    lobe.add_argument("--output", type=Path, default=Path("lobe.png"), help="Output file path (default: lobe.png)")
    lobe.add_argument(
        "--incoming",
        type=float,
        nargs=3,
        metavar=("X", "Y", "Z"),
        default=None,
        help="Incoming direction (default: from config, -1 1 0)",
    )
    lobe.add_argument("--resolution", type=int, default=None, help="Image size in pixels (default: from config, 256)")
    lobe.add_argument("--tone-map", choices=TONE_MAP_METHODS, default=None, help="Tone mapping (default: from config)")
    return parser


def configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def load_library(settings: Settings, paths: Sequence[Path]) -> BRDFLibrary:
    """Load the given definition paths, or the configured folders if none."""
    library = BRDFLibrary(settings.library)
    if not paths:
        for folder in settings.library.folders:
            directory = settings.library.definitions_dir / folder
            if directory.is_dir():
                library.load_directory(directory)
            else:
                LOGGER.info("Skipping missing definitions folder %s", directory)
        return library

    for path in paths:
        if path.is_dir():
            library.load_directory(path)
            continue
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            library.errors[str(path)] = str(e)
            LOGGER.error("Cannot read %s: %s", path, e)
            continue
        try:
            mapping = json.loads(text)
        except json.JSONDecodeError as e:
            error = DefinitionFormatError(f"Malformed JSON: {e}")
            library.errors[str(path)] = str(error)
            LOGGER.error("Invalid BRDF definition [%s]: %s", path, error)
            continue
        library.load_definitions([mapping])
    return library


def _report_errors(library: BRDFLibrary) -> None:
    for key, message in library.errors.items():
        print(f"  {key}: failed to load: {message}")


def cmd_verify(args: argparse.Namespace, settings: Settings) -> int:
    library = load_library(settings, args.paths)
    if len(library) == 0 and not library.errors:
        print("No BRDF definitions found.")
        return 1

    sink = CSVSink(args.diagnostics) if args.diagnostics else LoggingSink()
    try:
        verifier = PlausibilityVerifier(settings.verifier, sink)
        results = library.verify_all(
            verifier,
            num_incoming=args.incoming,
            samples_per_test=args.samples,
            mode=args.mode,
            max_workers=args.workers,
        )
    finally:
        if isinstance(sink, CSVSink):
            sink.close()

    width = max([len(alias) for alias in results] + [5])
    print(f"{'Alias':<{width}}  {'Verdict':<20}  Estimator")
    for alias, result in results.items():
        if result.physically_based:
            verdict = "plausible"
        else:
            verdict = f"violates {result.violation.value}"
        estimator = f"{result.energy.estimator:.4f}" if result.energy is not None else "-"
        print(f"{alias:<{width}}  {verdict:<20}  {estimator}")
    _report_errors(library)

    failed = any(not r.physically_based for r in results.values())
    return 1 if failed or library.errors else 0


def _get_model(args: argparse.Namespace, settings: Settings):
    library = load_library(settings, args.definitions)
    if args.alias not in library:
        _report_errors(library)
        print(f"No BRDF registered as {args.alias!r}. Known: {', '.join(library.aliases()) or '-'}")
        return library, None
    return library, library.get(args.alias)


def cmd_show(args: argparse.Namespace, settings: Settings) -> int:
    library, model = _get_model(args, settings)
    if model is None:
        return 1

    print(f"{args.alias} ({model.name}, {model.reflection_class.value})")
    for parameter in model.get_parameters():
        print(f"  {parameter.label:<32} {parameter.kind:<9} {parameter.display_value()}")
    print(json.dumps(library.definition(args.alias), indent=2))
    return 0


def cmd_lobe(args: argparse.Namespace, settings: Settings) -> int:
    _, model = _get_model(args, settings)
    if model is None:
        return 1

    preview = settings.preview
    incoming = args.incoming or preview.incoming
    path = save_lobe_png(
        model,
        incoming,
        args.output,
        resolution=args.resolution or preview.resolution,
        tone_map=args.tone_map or preview.tone_map,
        gamma=preview.gamma,
        exposure=preview.exposure,
    )
    print(f"Saved lobe of {args.alias} to {path}")
    return 0


COMMANDS = {
    "verify": cmd_verify,
    "show": cmd_show,
    "lobe": cmd_lobe,
}


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point of the ``brdfkit`` console script."""
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        settings = load_settings(args.config) if args.config else Settings()
    except (OSError, ValueError) as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return 2

    try:
        return COMMANDS[args.command](args, settings)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
