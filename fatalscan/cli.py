import argparse
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .core.config import (
    ALL_ERRORS_SEVERITIES,
    DEFAULT_PHP_VERSIONS,
    DEFAULT_SEVERITIES,
    DEFAULT_WP_VERSIONS,
    ScanOptions,
    load_json_config,
)
from .core.loader import detector_classes, discover_detectors, select_detectors
from .core.models import SEVERITIES, FatalScanError
from .core.reporting import ConsoleReporter, Reporter
from .core.scanner import PluginScanner, build_ecosystem_detector, build_services, configure_logging
from .core.utils import split_csv
from .ecosystems.widgets import REPORTING_MODES, WidgetExclusionManager


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="fatalscan",
        description="Static scan of a WordPress plugin for code likely to cause fatal errors.",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = p.add_subparsers(dest="command", required=True)

    # scan mode
    s = sub.add_parser("scan", help="Scan a plugin directory or a single PHP file.")
    s.add_argument("path", type=Path, nargs="?", default=Path("."), help="Plugin directory or PHP file (default: current directory).")
    s.add_argument("--php", default=",".join(DEFAULT_PHP_VERSIONS), help="Comma-separated PHP versions to check.")
    s.add_argument("--wp", default=",".join(DEFAULT_WP_VERSIONS), help="Comma-separated WordPress versions to check.")
    s.add_argument("--show-all-errors", "--all", dest="severity_preset", action="store_const", const="all", help="Report warnings as well as fatal errors.")
    s.add_argument("--fatal-only", dest="severity_preset", action="store_const", const="fatal", help="Report fatal errors only (default).")
    s.add_argument("--severity", default=None, help="Explicit comma-separated severities to report (error,warning,info).")
    s.add_argument("--mode", choices=sorted(REPORTING_MODES), default=None, help="Widget exclusion reporting mode (overrides the config file).")
    s.add_argument("--config", type=Path, default=None, help="JSON config with exclusion rules and ecosystem tables.")
    s.add_argument("--detectors", default="all", help="Comma-delimited detectors to run (e.g. 'syntax,class_conflict') or 'all'.")
    s.add_argument("--disable-ecosystem-detection", action="store_true", help="Do not detect plugin ecosystems.")
    s.add_argument("--force-ecosystem", default="", help="Comma-separated ecosystems to treat as present.")
    s.add_argument("--ignore-dependency-errors", action="store_true", help="Drop undefined class/function findings for symbols any known ecosystem provides.")
    s.add_argument("--no-php", action="store_true", help="Never invoke a PHP binary (no lint, no runtime probing).")
    s.add_argument("--php-binary", default="php", help="PHP executable used for lint and runtime probing.")
    s.add_argument("--out", type=Path, default=None, help="Write findings.json, findings.md, index.json and summary.md here.")
    s.add_argument("--workers", type=int, default=8, help="Number of worker threads for scanning.")
    s.add_argument("--no-progress", action="store_true", help="Disable the progress bar.")
    s.add_argument("--no-colors", action="store_true", help="Disable ANSI colors in the console report.")
    s.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging output.")

    # exclusions mode
    e = sub.add_parser("exclusions", help="Show widget exclusion rules and reporting modes.")
    e.add_argument("--config", type=Path, default=None, help="JSON config to layer onto the built-in rules.")
    e.add_argument("--save", type=Path, default=None, help="Write the merged configuration to this path.")
    e.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging output.")

    # detectors mode
    sub.add_parser("detectors", help="List available detectors.")

    return p


def _severities(args: argparse.Namespace) -> List[str]:
    if args.severity:
        return [s.lower() for s in split_csv(args.severity)]
    if args.severity_preset == "all":
        return list(ALL_ERRORS_SEVERITIES)
    return list(DEFAULT_SEVERITIES)


def run_scan(args: argparse.Namespace) -> int:
    logger = configure_logging(verbose=args.verbose)
    severities = _severities(args)
    unknown = [s for s in severities if s not in SEVERITIES]
    if unknown or not severities:
        print(f"Unknown severity level(s): {', '.join(unknown) or '(none)'}", file=sys.stderr)
        return 2

    options = ScanOptions(
        php_versions=split_csv(args.php) or list(DEFAULT_PHP_VERSIONS),
        wp_versions=split_csv(args.wp) or list(DEFAULT_WP_VERSIONS),
        severities=severities,
        detect_ecosystems=not args.disable_ecosystem_detection,
        forced_ecosystems=split_csv(args.force_ecosystem),
        ignore_dependency_errors=args.ignore_dependency_errors,
        workers=args.workers,
        show_progress=not args.no_progress,
        verbose=args.verbose,
        php_binary=None if args.no_php else args.php_binary,
        reporting_mode=args.mode,
    )
    config = load_json_config(args.config)
    services = build_services(config, options)
    activated = select_detectors(discover_detectors(services), args.detectors)

    if not activated:
        print("No detectors selected. Exiting.", file=sys.stderr)
        return 2

    scanner = PluginScanner(
        args.path,
        activated,
        services,
        options,
        ecosystem_detector=build_ecosystem_detector(config),
        logger=logger,
    )
    try:
        result = scanner.scan()
    except FatalScanError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    ConsoleReporter(use_colors=False if args.no_colors else None).report(result, severities)
    if args.out is not None:
        Reporter(args.out).write_all(result)
    return 0 if result.passed else 1


def run_exclusions(args: argparse.Namespace) -> int:
    configure_logging(verbose=args.verbose)
    try:
        config = load_json_config(args.config, strict=True)
    except FatalScanError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    manager = WidgetExclusionManager(config=config)
    print("Widget exclusion statistics:")
    for key, value in manager.exclusion_stats().items():
        print(f"  {key}: {value}")
    print("Reporting modes:")
    for mode, description in manager.available_reporting_modes().items():
        marker = "*" if mode == manager.reporting_mode else " "
        print(f"  {marker} {mode}: {description}")
    print(f"Active mode: {manager.reporting_mode}")
    if args.save is not None:
        if not manager.save_configuration(args.save):
            print(f"Could not write {args.save}", file=sys.stderr)
            return 1
        print(f"Configuration written to {args.save}")
    return 0


def run_detectors(args: argparse.Namespace) -> int:
    for name, cls in detector_classes().items():
        print(f"{name:<20} {cls.TITLE}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    if args.command == "scan":
        return run_scan(args)
    elif args.command == "exclusions":
        return run_exclusions(args)
    elif args.command == "detectors":
        return run_detectors(args)
    else:
        parser.print_help()
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
