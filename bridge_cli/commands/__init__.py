"""
CLI command modules.
"""

from bridge_cli.commands import proof, serve, simulate

__all__ = ["proof", "serve", "simulate"]
