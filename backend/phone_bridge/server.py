"""
Phone Bridge Server - command line entry point.

Runs the application on two listeners sharing one session registry:
- HTTPS on all interfaces for the phone (browsers require a secure context
  for the camera and peer connections)
- Plain HTTP on localhost for the desktop plugin

Usage:
    phone-bridge /path/to/graph
    phone-bridge --http-only
"""
import argparse
import asyncio
import logging
import socket
import sys
from pathlib import Path
from typing import List, Optional, Sequence

import uvicorn

from phone_bridge.config.constants import SSL_CERT_FILENAME, SSL_HELP_COMMAND, SSL_KEY_FILENAME
from phone_bridge.config.settings import settings
from phone_bridge.main import app
from phone_bridge.services.signaling import session_registry

logger = logging.getLogger("phone_bridge.server")


class BridgeServer(uvicorn.Server):
    """uvicorn server that stops its sibling listeners and open streams on exit."""

    def __init__(self, config: uvicorn.Config, group: List["BridgeServer"]):
        super().__init__(config)
        self.group = group
        group.append(self)

    def handle_exit(self, sig, frame) -> None:
        # Streams never finish on their own; end them so shutdown is not held up.
        # The signal may interrupt a registry critical section on this thread,
        # so the close runs from the event loop once the handler returns.
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            session_registry.close_all()
        else:
            loop.call_soon_threadsafe(session_registry.close_all)
        for server in self.group:
            if server is not self:
                server.should_exit = True
        super().handle_exit(sig, frame)


def lan_addresses() -> List[str]:
    """IPv4 addresses of this machine other than loopback."""
    try:
        infos = socket.getaddrinfo(socket.gethostname(), None, socket.AF_INET)
    except socket.gaierror:
        return []
    return sorted({info[4][0] for info in infos if not info[4][0].startswith("127.")})


def ssl_files(ssl_dir: str) -> Optional[tuple]:
    key = Path(ssl_dir) / SSL_KEY_FILENAME
    cert = Path(ssl_dir) / SSL_CERT_FILENAME
    if key.is_file() and cert.is_file():
        return str(key), str(cert)
    return None


def build_servers(https: bool) -> List[BridgeServer]:
    listeners = []
    if https:
        key_file, cert_file = ssl_files(settings.SSL_DIR)
        listeners.append(dict(
            host=settings.HTTPS_HOST,
            port=settings.HTTPS_PORT,
            ssl_keyfile=key_file,
            ssl_certfile=cert_file,
        ))
    listeners.append(dict(host=settings.HTTP_HOST, port=settings.HTTP_PORT))

    group: List[BridgeServer] = []
    for index, listener in enumerate(listeners):
        # The lifespan runs once, on the first listener
        config = uvicorn.Config(
            app,
            lifespan="on" if index == 0 else "off",
            timeout_graceful_shutdown=settings.SHUTDOWN_GRACE_SEC,
            log_level=settings.LOG_LEVEL.lower(),
            **listener,
        )
        BridgeServer(config, group)
    return group


def print_banner(https: bool) -> None:
    logger.info("📱 Phone Bridge Server")
    if https:
        logger.info(f"  HTTPS (Phone):   https://{settings.HTTPS_HOST}:{settings.HTTPS_PORT}")
        for address in lan_addresses():
            logger.info(f"  Network:         https://{address}:{settings.HTTPS_PORT}")
    logger.info(f"  HTTP (Plugin):   http://{settings.HTTP_HOST}:{settings.HTTP_PORT}")
    if settings.GRAPH_PATH:
        logger.info(f"  Graph:           {settings.GRAPH_PATH}")
    else:
        logger.info("  ⚠ No graph path - image saving disabled")


async def serve(servers: Sequence[BridgeServer]) -> None:
    await asyncio.gather(*(server.serve() for server in servers))


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Phone Bridge signaling and image server.")
    parser.add_argument("graph_path", nargs="?", default=None, help="Graph folder whose assets/ receives images.")
    parser.add_argument("--http-only", action="store_true", help="Skip the HTTPS listener for the phone.")
    parser.add_argument("--https-port", type=int, default=None, help="Port of the HTTPS listener.")
    parser.add_argument("--http-port", type=int, default=None, help="Port of the local HTTP listener.")
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.graph_path:
        settings.GRAPH_PATH = args.graph_path
    if args.https_port is not None:
        settings.HTTPS_PORT = args.https_port
    if args.http_port is not None:
        settings.HTTP_PORT = args.http_port

    https = settings.HTTPS_ENABLED and not args.http_only
    if https and ssl_files(settings.SSL_DIR) is None:
        logger.error(f"SSL certs not found in {settings.SSL_DIR}/. Run:")
        logger.error(f"  {SSL_HELP_COMMAND}")
        sys.exit(1)

    print_banner(https)
    try:
        asyncio.run(serve(build_servers(https)))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":  # pragma: no cover
    main()
