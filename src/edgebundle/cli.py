"""
Command-line interface for Edge Bundle.

Provides commands for bundling an edge file and writing a default config.
"""

import argparse
import sys

from edgebundle.config import load_config, save_default_config
from edgebundle.tracer import configure_tracer, get_tracer


def build_parser():
    parser = argparse.ArgumentParser(
        prog="edgebundle",
        description="Edge Bundle: force-directed edge bundling to smooth SVG paths",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Run command
    run_parser = subparsers.add_parser("run", help="Bundle the edges of an input file")
    run_parser.add_argument(
        "--input", "-i",
        required=True,
        help="Edge file (JSON or YAML edge list, or node-link graph)",
    )
    run_parser.add_argument(
        "--out", "-o",
        required=True,
        help="Output directory",
    )
    run_parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to YAML configuration file",
    )
    run_parser.add_argument(
        "--no-svg",
        action="store_true",
        help="Skip writing bundled.svg",
    )
    run_parser.add_argument(
        "--trace",
        action="store_true",
        help="Enable runtime tracing",
    )
    run_parser.add_argument(
        "--trace-level",
        default=None,
        choices=["ERROR", "WARN", "INFO", "DEBUG"],
        help="Trace log level",
    )
    run_parser.add_argument(
        "--trace-file",
        default=None,
        help="Path to write trace logs",
    )
    run_parser.add_argument(
        "--trace-json",
        action="store_true",
        help="Enable JSON trace output",
    )

    # Init config command
    init_parser = subparsers.add_parser("init-config", help="Create default config file")
    init_parser.add_argument(
        "--out", "-o",
        default="edgebundle_config.yaml",
        help="Output path for config file",
    )

    return parser


def main(argv=None):
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "run":
        return handle_run(args)
    elif args.command == "init-config":
        return handle_init_config(args)

    return 0


def handle_run(args):
    """Handle the run command."""
    config = load_config(args.config)

    # Command-line flags win over the tracing section of the config file
    configure_tracer(
        enabled=args.trace or config.tracing.enabled,
        level=args.trace_level or config.tracing.level,
        file_path=args.trace_file or config.tracing.file_path,
        json_output=args.trace_json or config.tracing.json_output,
    )

    tracer = get_tracer()

    try:
        from edgebundle.io.load_edges import validate_edge_inputs
        from edgebundle.pipeline import run_pipeline

        errors = validate_edge_inputs(args.input)
        if errors:
            for error in errors:
                tracer.event(error, level="ERROR")
                print(f"Error: {error}", file=sys.stderr)
            return 1

        with tracer.span("cli_run", module="cli"):
            result, report = run_pipeline(
                input_path=args.input,
                out_dir=args.out,
                config=config,
                export_svg=not args.no_svg,
            )

        stats = result.stats

        print(f"\nBundling completed successfully.")
        print(f"  Edges: {stats.edge_count} ({stats.degenerate_count} degenerate)")
        print(f"  Compatible pairs: {stats.neighbor_pairs} kept, {stats.pruned_pairs} pruned")
        print(f"  Smoothing passes: {stats.smoothing_passes}")
        print(f"  Elapsed: {stats.elapsed_ms:.0f} ms")
        print(f"  Validation errors: {report.error_count}")
        print(f"  Validation warnings: {report.warning_count}")
        print(f"\nOutputs saved to: {args.out}/")
        print(f"  - result.json")
        if not args.no_svg:
            print(f"  - bundled.svg")
        print(f"  - validation_report.json")

        if report.has_errors:
            print(f"\n[!] Validation errors detected. Review validation_report.json")
            return 1

        return 0

    except Exception as e:
        tracer.event(f"Pipeline failed: {str(e)}", level="ERROR")
        print(f"\nError: {str(e)}", file=sys.stderr)
        return 1


def handle_init_config(args):
    """Handle the init-config command."""
    save_default_config(args.out)
    print(f"Default configuration saved to: {args.out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
