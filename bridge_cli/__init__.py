"""
Commitment Bridge CLI

Command-line interface for the commitment bridge.

Usage:
    python -m bridge_cli simulate --deposits 5
    python -m bridge_cli prove 0x<leaf> 0x<leaf> --index 1 --out proof.json
    python -m bridge_cli verify-proof proof.json --root 0x<root>
    python -m bridge_cli serve --port 8000
    python -m bridge_cli config --init
"""

__version__ = "0.1.0"
