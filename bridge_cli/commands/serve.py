"""
CLI Serve Command

Run the HTTP API with the relayer polling in the background.

Usage:
    bridge serve [--host 127.0.0.1] [--port 8000] [--no-relayer]
"""

from __future__ import annotations

import logging
from argparse import Namespace

from core.config.runtime import RuntimeConfig
from relayer.relayer import create_node


logger = logging.getLogger(__name__)


EXIT_SUCCESS = 0


def serve_cmd(args: Namespace) -> int:
    """Start the node, serve the API until interrupted, then stop the relayer."""
    import uvicorn

    from api.app import app
    from api.deps import set_node

    config: RuntimeConfig = args.runtime_config
    node = create_node(config)
    set_node(node)

    if args.no_relayer:
        node.relayer.restore()
        logger.info("Relayer disabled; use POST /relayer/poll to relay manually")
    else:
        node.relayer.start()

    try:
        uvicorn.run(app, host=args.host, port=args.port, log_level=config.log_level.lower())
    finally:
        node.shutdown()
        set_node(None)
    return EXIT_SUCCESS
