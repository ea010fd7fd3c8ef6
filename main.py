#!/usr/bin/env python3
"""Main Entry Point and CLI Integration.

This module provides the command-line interface for installorder. It loads
configuration, configures logging, reads a package manifest, builds the
resolver and prints the result of the requested query, one package per line.
"""

import argparse
import sys
from collections.abc import Sequence

import structlog

from installorder.config import InstallOrderConfig, load_config
from installorder.graph.traversal import CycleDetectedError
from installorder.graph.validator import GraphValidator
from installorder.log_config import bind_context, configure_logging
from installorder.manifest import ManifestError, ManifestParser
from installorder.resolver import PackageNotFoundError, Resolver

logger = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


def build_resolver(manifest_path: str, config: InstallOrderConfig) -> Resolver:
    """Build a resolver from a manifest using the configured manifest layout.

    Args:
        manifest_path: Path to the manifest file
        config: Loaded configuration

    Returns:
        Resolver populated with the manifest's packages
    """
    parser = ManifestParser(
        packages_key=config.manifest.packages_key,
        name_key=config.manifest.name_key,
        dependencies_key=config.manifest.dependencies_key,
    )
    resolver = Resolver.from_manifest(manifest_path, parser=parser)

    logger.info("resolver_built", **resolver.graph.get_stats())

    return resolver


def run_command(args: argparse.Namespace, resolver: Resolver) -> tuple[list[str], int]:
    """Run the selected sub-command.

    Args:
        args: Parsed command-line arguments
        resolver: Resolver built from the manifest

    Returns:
        Tuple of (output lines, exit code)

    Raises:
        PackageNotFoundError: If a named package is not in the manifest
        CycleDetectedError: If the query runs into a dependency cycle
    """
    if args.command == "packages":
        return sorted(resolver.get_all_packages()), EXIT_OK

    if args.command == "order":
        return resolver.get_installation_order(args.package), EXIT_OK

    if args.command == "all":
        return resolver.get_installation_order_for_all_packages(), EXIT_OK

    if args.command == "to-install":
        return resolver.to_install(args.new_package, args.installed_package), EXIT_OK

    if args.command == "max-deps":
        package = resolver.get_package_with_max_dependencies()
        return ([package] if package is not None else []), EXIT_OK

    validator = GraphValidator()

    if args.command == "validate":
        report = validator.validate(resolver.graph)
        return [report.summary()], EXIT_OK if report.is_valid else EXIT_FAILURE

    return [validator.generate_visualization(resolver.graph, args.format)], EXIT_OK


def main_cli(args: argparse.Namespace) -> int:
    """Main entry point once arguments are parsed.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    configure_logging(
        args.log_level or config.logging_level,
        json_logs=args.json_logs or config.json_logs,
    )

    manifest_path = args.manifest or config.manifest.path
    if not manifest_path:
        print("error: no manifest given (use --manifest or set manifest.path)", file=sys.stderr)
        return EXIT_FAILURE

    bind_context(manifest=manifest_path, command=args.command)

    try:
        resolver = build_resolver(manifest_path, config)
        lines, exit_code = run_command(args, resolver)
    except FileNotFoundError as e:
        logger.error("manifest_not_found", error=str(e))
        print(f"error: {e}", file=sys.stderr)
        return EXIT_FAILURE
    except ManifestError as e:
        logger.error("manifest_invalid", error=e.message, path=e.path)
        print(f"error: {e.message}", file=sys.stderr)
        return EXIT_FAILURE
    except PackageNotFoundError as e:
        print(f"error: {e.message}", file=sys.stderr)
        return EXIT_FAILURE
    except CycleDetectedError as e:
        print(f"error: {e.message}", file=sys.stderr)
        return EXIT_FAILURE

    for line in lines:
        print(line)

    return exit_code


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Arguments to parse; defaults to sys.argv[1:]

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="installorder",
        description="Compute valid installation orders from a package dependency manifest",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Installation order for one package
  installorder order A --manifest packages.json

  # Order for every package in the manifest
  installorder all --manifest packages.json

  # What else is needed for A when B is already installed
  installorder to-install A B --manifest packages.json

  # Render the graph for Graphviz
  installorder graph --format dot --manifest packages.json
        """,
    )

    parser.add_argument(
        "-c",
        "--config",
        type=str,
        default=None,
        help="Path to configuration YAML file (default: installorder.yaml if present)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Set logging level (default: from configuration, INFO)",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug output (DEBUG level)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Render log lines as JSON",
    )

    manifest_parent = argparse.ArgumentParser(add_help=False)
    manifest_parent.add_argument(
        "-m",
        "--manifest",
        type=str,
        default=None,
        help="Path to the JSON or YAML package manifest",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser(
        "packages",
        parents=[manifest_parent],
        help="List every package in the manifest",
    )

    order_parser = subparsers.add_parser(
        "order",
        parents=[manifest_parent],
        help="Installation order for one package",
    )
    order_parser.add_argument("package", help="Package to install")

    subparsers.add_parser(
        "all",
        parents=[manifest_parent],
        help="Installation order for every package",
    )

    to_install_parser = subparsers.add_parser(
        "to-install",
        parents=[manifest_parent],
        help="Packages still needed for a new package given an installed one",
    )
    to_install_parser.add_argument("new_package", help="Package to install")
    to_install_parser.add_argument("installed_package", help="Package already installed")

    subparsers.add_parser(
        "max-deps",
        parents=[manifest_parent],
        help="Root package with the most dependencies",
    )

    subparsers.add_parser(
        "validate",
        parents=[manifest_parent],
        help="Report cycles, blocked and isolated packages",
    )

    graph_parser = subparsers.add_parser(
        "graph",
        parents=[manifest_parent],
        help="Render the dependency graph",
    )
    graph_parser.add_argument(
        "--format",
        type=str.lower,
        choices=["mermaid", "dot"],
        default="mermaid",
        help="Output format (default: mermaid)",
    )

    args = parser.parse_args(argv)

    if args.debug:
        args.log_level = "DEBUG"

    return args


def main(argv: Sequence[str] | None = None) -> None:
    """Main entry point for the installorder command.

    This function parses arguments, runs the selected query,
    and exits with the appropriate code.
    """
    args = parse_args(argv)
    sys.exit(main_cli(args))


if __name__ == "__main__":
    main()
