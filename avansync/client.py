"""The interactive sync client: reads commands and talks to the server."""

from __future__ import annotations

import argparse
import socket
import sys

from avansync.client_handlers import get_handler
from avansync.protocol import ConnectionClosed, LineStream, split_on_char

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 12345
DEFAULT_ROOT = "./client_dir/"


class Client:
    """A connection to a sync server driven by lines read from ``stdin``."""

    prompt = "avansync> "
    reply_timeout = 0.1

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT,
                 root_dir=DEFAULT_ROOT, stdin=None, stdout=None) -> None:
        self.root_dir = root_dir
        self.stdin = stdin if stdin is not None else sys.stdin
        self.stdout = stdout if stdout is not None else sys.stdout
        self._connected = True

        print("client starting", file=self.stdout, flush=True)
        try:
            sock = socket.create_connection((host, port))
        except OSError as exc:
            raise ConnectionError("could not connect to server") from exc
        self.stream = LineStream(sock)

        try:
            for message in self.messages():
                print(message, file=self.stdout)
        except BaseException:
            self.stream.close()
            raise

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def connected(self) -> bool:
        return self._connected

    def run(self) -> None:
        """Prompt for requests and handle them until disconnected."""
        while self._connected:
            self.stdout.write(self.prompt)
            self.stdout.flush()
            line = self.stdin.readline()
            if not line:
                self.disconnect()
                break
            try:
                self.handle_request(line.rstrip("\r\n"))
            except ConnectionError as exc:
                print(f"Something went wrong in the request: {exc}", file=sys.stderr)
                self.disconnect()
            except Exception as exc:
                print(f"Something went wrong in the request: {exc}", file=sys.stderr)

    def handle_request(self, request: str) -> None:
        """Run the handler for one typed request line."""
        arguments = split_on_char(request, " ")
        if not arguments:
            raise ValueError("empty request")
        get_handler(arguments)(self, request)

    def messages(self) -> list[str]:
        """Return the lines of the server's next reply."""
        lines: list[str] = []
        try:
            while True:
                lines.append(self.stream.read_line())
                if not self.stream.has_pending(self.reply_timeout):
                    break
        except ConnectionClosed:
            self.disconnect()
        return lines

    def disconnect(self) -> None:
        self._connected = False

    def close(self) -> None:
        """Close the connection to the server."""
        self.stream.close()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="avansync",
                                     description="Interactive client for a sync server.")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--root", default=DEFAULT_ROOT, help="local directory to sync")
    args = parser.parse_args(argv)

    try:
        with Client(args.host, args.port, args.root) as client:
            client.run()
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())