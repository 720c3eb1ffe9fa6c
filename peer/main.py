"""Peer node entry point: serve local files and run the interactive shell."""

import os
import sys
import threading

import uvicorn

from common.logging_config import setup_logging
from peer.commands import set_node
from peer.config import PeerConfig
from peer.exceptions import PeerError
from peer.file_server import create_file_server_app
from peer.node import PeerNode
from peer.repl import repl_loop


def start_file_server(node: PeerNode, log_level: str) -> tuple[uvicorn.Server, threading.Thread]:
    """
    Run the file-serving endpoint on a daemon thread.

    Returns:
        The uvicorn server (set should_exit to stop it) and its thread
    """
    app = create_file_server_app(node.store)
    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host="0.0.0.0",
            port=node.config.get_file_port(),
            log_level=log_level.lower(),
        )
    )
    thread = threading.Thread(target=server.run, name="peer-file-server", daemon=True)
    thread.start()
    return server, thread


def main() -> None:
    """Entry point for the peer node."""
    log_level = 'DEBUG' if '--debug' in sys.argv else os.getenv('LOG_LEVEL', 'INFO')

    logger = setup_logging('peer', log_level=log_level)

    if '--debug' in sys.argv:
        logger.info("Debug logging enabled")
        sys.argv.remove('--debug')

    logger.info("Peer node starting...")
    node = PeerNode(PeerConfig())
    node.store.initialize()
    set_node(node)

    try:
        if node.check_session():
            logger.info(f"Resuming session of {node.session.username}")
    except PeerError as e:
        logger.warning(f"Could not confirm saved session: {e}")

    server, thread = start_file_server(node, log_level)
    logger.info(f"Serving files on port {node.config.get_file_port()}")

    try:
        repl_loop(node)
    except Exception as e:
        logger.error(f"Peer error: {e}", exc_info=True)
        raise
    finally:
        if node.is_authenticated:
            try:
                node.logout()
            except PeerError as e:
                logger.warning(f"Could not log out on exit: {e}")
        node.close()
        server.should_exit = True
        thread.join(timeout=5)
        logger.info("Peer node exiting")


if __name__ == "__main__":
    main()
