"""The sync server: accepts one client at a time and serves its requests."""

from __future__ import annotations

import argparse
import socket
import sys

from avansync.protocol import LineStream, split_on_char
from avansync.server_handlers import get_handler

DEFAULT_HOST = ""
DEFAULT_PORT = 12345
DEFAULT_ROOT = "./server_dir/"
WELCOME = "Welcome to AvanSync server 1.0"


class Server:
    """A listening socket that serves clients one after another."""

    def __init__(self, root_dir=DEFAULT_ROOT, port: int = DEFAULT_PORT,
                 host: str = DEFAULT_HOST) -> None:
        self.root_dir = root_dir
        self._listener = socket.create_server((host, port))

    def __enter__(self) -> Server:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def address(self) -> tuple[str, int]:
        """The host and port the server listens on."""
        host, port = self._listener.getsockname()[:2]
        return host, port

    def run(self) -> None:
        """Serve clients until the process is stopped."""
        while True:
            self.handle_client()

    def handle_client(self) -> None:
        """Wait for one client and serve it until it leaves."""
        print("waiting for client to connect", flush=True)
        sock, address = self._listener.accept()
        peer = f"{address[0]}:{address[1]}"
        with LineStream(sock) as stream:
            ServerSession(self, stream, peer).run()

    def close(self) -> None:
        """Stop listening."""
        self._listener.close()


class ServerSession:
    """The conversation with one connected client."""

    def __init__(self, server, stream: LineStream, peer: str) -> None:
        self.server = server
        self.stream = stream
        self.peer = peer
        self._connected = True
        print(f"Client connected from {peer}")

    def run(self) -> None:
        """Greet the client and answer its requests until it disconnects."""
        try:
            self.stream.write_line(WELCOME)
            while not self.disconnected():
                sys.stdout.flush()
                self.handle_request(self.read_line())
        except ConnectionError:
            self.disconnect()

    def handle_request(self, request: str) -> None:
        """Dispatch one request line to its handler."""
        print(f"client says: {request}")
        arguments = split_on_char(request, " ")
        if arguments:
            get_handler(arguments)(self, arguments)

    def read_line(self) -> str:
        """Return the next line sent by the client."""
        return self.stream.read_line()

    def disconnect(self) -> None:
        self._connected = False

    def disconnected(self) -> bool:
        return not self._connected


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="avansync-server",
                                     description="Serve a directory to sync clients.")
    parser.add_argument("--root", default=DEFAULT_ROOT, help="directory to serve")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--host", default=DEFAULT_HOST)
    args = parser.parse_args(argv)

    try:
        with Server(args.root, args.port, args.host) as server:
            server.run()
    except KeyboardInterrupt:
        return 0
    except Exception as exc:
        print(f"server error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())