"""
CLI Main Entry Point

Parses command-line arguments and dispatches to subcommands.

Usage:
    python -m bridge_cli simulate [--deposits N] [--amount A] [--seed S] [--json] [--debug]
    python -m bridge_cli prove <leaf>... --index I [--depth D] [--out PATH] [--json]
    python -m bridge_cli verify-proof <proof_path> [--root HEX] [--commitment HEX] [--json]
    python -m bridge_cli serve [--host HOST] [--port PORT] [--no-relayer]
    python -m bridge_cli config --init|--show

Environment Variables:
    BRIDGE_TREE_DEPTH           Commitment tree depth (default: 32)
    BRIDGE_MAX_AMOUNT_PER_TX    Per-credit safety limit
    BRIDGE_POLL_INTERVAL        Seconds between source polls
    BRIDGE_BATCH_SIZE           Events fetched per poll
    BRIDGE_MAX_WORKERS          Parallel proof workers
    BRIDGE_CHECKPOINT_PATH      Relay checkpoint file
    BRIDGE_LOG_LEVEL            Log level (default: INFO)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import traceback
from pathlib import Path
from typing import Sequence

from bridge_cli.commands import proof, serve, simulate
from bridge_cli.config import get_default_config_template, load_config


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Configure logging for the CLI."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="bridge",
        description="Commitment Bridge CLI - Simulate the relay, build and check inclusion proofs, serve the API.",
    )
    parser.add_argument(
        "--version", action="version", version="%(prog)s 0.1.0"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to configuration file (default: ./bridge.yaml, ./bridge.json or ~/.config/bridge/config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Also write logs to this file",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- simulate command ---
    simulate_parser = subparsers.add_parser(
        "simulate",
        help="Run source, relay and destination end to end in one process",
        description="Deposit commitments, relay them and check the ledger matches the source.",
    )
    simulate_parser.add_argument(
        "--deposits", "-n",
        type=int,
        default=5,
        help="Number of commitments to deposit (default: 5)",
    )
    simulate_parser.add_argument(
        "--amount",
        type=int,
        default=None,
        help="Amount per deposit (default: relayer default_amount)",
    )
    simulate_parser.add_argument(
        "--seed",
        type=str,
        default="bridge",
        help="Seed for the deterministic demo commitments",
    )
    simulate_parser.add_argument(
        "--depth",
        type=int,
        default=None,
        help="Tree depth (overrides config)",
    )
    simulate_parser.add_argument(
        "--checkpoint",
        action="store_true",
        default=False,
        help="Keep the configured checkpoint path (disabled by default for simulations)",
    )
    simulate_parser.add_argument(
        "--no-replay",
        action="store_true",
        default=False,
        help="Skip the double-credit check",
    )
    simulate_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output machine-readable JSON summary",
    )
    simulate_parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Raise errors with tracebacks",
    )
    simulate_parser.set_defaults(func=simulate.simulate_cmd)

    # --- prove command ---
    prove_parser = subparsers.add_parser(
        "prove",
        help="Build an inclusion proof over a list of leaves",
        description="Insert the given leaves into a fresh tree and prove one of them.",
    )
    prove_parser.add_argument(
        "leaves",
        nargs="+",
        type=str,
        help="Leaves as 32-byte hex strings, in insertion order",
    )
    prove_parser.add_argument(
        "--index", "-i",
        type=int,
        required=True,
        help="Index of the leaf to prove",
    )
    prove_parser.add_argument(
        "--depth",
        type=int,
        default=None,
        help="Tree depth (default: from config)",
    )
    prove_parser.add_argument(
        "--out", "-o",
        type=str,
        default=None,
        help="Write the proof JSON to this path",
    )
    prove_parser.add_argument("--json", action="store_true", default=False, help="JSON output")
    prove_parser.add_argument("--debug", action="store_true", default=False, help="Debug mode")
    prove_parser.set_defaults(func=proof.prove_cmd)

    # --- verify-proof command ---
    verify_parser = subparsers.add_parser(
        "verify-proof",
        help="Verify a proof file offline",
        description="Verify a proof and optionally compare its root and commitment.",
    )
    verify_parser.add_argument(
        "proof_path",
        type=str,
        help="Path to a proof JSON file written by 'bridge prove'",
    )
    verify_parser.add_argument("--root", type=str, default=None, help="Expected root (hex)")
    verify_parser.add_argument("--commitment", type=str, default=None, help="Expected commitment (hex)")
    verify_parser.add_argument("--json", action="store_true", default=False, help="JSON output")
    verify_parser.add_argument("--debug", action="store_true", default=False, help="Debug mode")
    verify_parser.set_defaults(func=proof.verify_proof_cmd)

    # --- serve command ---
    serve_parser = subparsers.add_parser(
        "serve",
        help="Serve the HTTP API with the relayer running",
        description="Run the bridge API; the relayer polls the source in the background.",
    )
    serve_parser.add_argument("--host", type=str, default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port")
    serve_parser.add_argument(
        "--no-relayer",
        action="store_true",
        default=False,
        help="Do not start background polling",
    )
    serve_parser.set_defaults(func=serve.serve_cmd)

    # --- config command ---
    config_parser = subparsers.add_parser(
        "config",
        help="Manage configuration",
        description="Initialize or display configuration.",
    )
    config_parser.add_argument(
        "--init",
        action="store_true",
        default=False,
        help="Create a template configuration file",
    )
    config_parser.add_argument(
        "--show",
        action="store_true",
        default=False,
        help="Show the effective configuration",
    )
    config_parser.add_argument(
        "--path",
        type=str,
        default="bridge.yaml",
        help="Path for config file (default: bridge.yaml)",
    )
    config_parser.set_defaults(func=config_cmd)

    return parser


def config_cmd(args: argparse.Namespace) -> int:
    """Handle config command."""
    if args.init:
        config_path = Path(args.path)
        if config_path.exists():
            print(f"Error: Config file already exists: {config_path}", file=sys.stderr)
            return EXIT_RUNTIME_ERROR

        config_path.write_text(get_default_config_template())
        print(f"Created configuration file: {config_path}")
        print("\nEdit this file to configure your settings.")
        print("You can also use environment variables (BRIDGE_* prefix).")
        return EXIT_SUCCESS

    if args.show:
        print(json.dumps(args.runtime_config.to_dict(), indent=2))
        return EXIT_SUCCESS

    # Default: show help
    print("Usage: bridge config [--init|--show]")
    print("  --init  Create a template configuration file")
    print("  --show  Show current configuration")
    return EXIT_SUCCESS


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0=success, 1=error, 2=verification failed)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_RUNTIME_ERROR

    # Load configuration
    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    # Setup logging
    log_level = args.log_level or config.log_level
    config.log_level = log_level
    setup_logging(level=log_level, log_file=args.log_file)

    # Attach config to args for commands to use
    args.runtime_config = config

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except Exception as e:
        if getattr(args, "debug", False):
            traceback.print_exc()
        else:
            print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
