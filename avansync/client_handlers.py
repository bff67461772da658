"""Client-side handlers for the commands typed at the sync prompt.

Every handler takes the client and the request line as typed. The client
offers ``stream`` (a LineStream to the server), ``root_dir`` (the local
mirror directory), ``stdout`` (where replies are shown), ``messages()``
(the lines of the server's next reply) and ``disconnect()``.
"""

from __future__ import annotations

import os
import re
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

from avansync.protocol import split_on_char

BUFFER_SIZE = 512
SYNC_START = "./"
_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
_DIGITS = re.compile(r"[0-9]+")

Handler = Callable[[Any, str], None]


def _local(client, relative: str) -> Path:
    return Path(f"{os.fspath(client.root_dir)}/{relative}")


def _show(client, *lines: str) -> None:
    for line in lines:
        print(line, file=client.stdout)


def _show_reply(client) -> None:
    _show(client, *client.messages())


def is_number(text: str) -> bool:
    """Tell whether ``text`` is a non-empty run of ASCII digits."""
    return _DIGITS.fullmatch(text) is not None


def file_is_newer(local_path, row: str) -> bool:
    """Tell whether the local file is newer than the server listing row says.

    A row whose time field cannot be parsed counts as not older.
    """
    stamp = split_on_char(row, "|")[2]
    try:
        parsed = datetime.strptime(stamp, _TIME_FORMAT)
    except ValueError:
        return False
    server_time = time.mktime(
        (parsed.year, parsed.month, parsed.day,
         parsed.hour, parsed.minute, parsed.second, 0, 0, 0)
    )
    local_time = int(os.stat(local_path).st_mtime)
    return local_time > server_time


def request_mkdir(client, request: str) -> None:
    arguments = split_on_char(request, " ")
    if len(arguments) != 3:
        _show(client, "Error: expected 2 arguments <parent dir> <dir name>")
        return
    _, parent, name = arguments
    client.stream.write_line("MKDIR")
    client.stream.write_line(parent)
    client.stream.write_line(name)
    _show_reply(client)


def request_delete(client, request: str) -> None:
    arguments = split_on_char(request, " ")
    if len(arguments) != 2:
        _show(client, "Expected 1 argument: DEL <path>")
        return
    client.stream.write_line("DEL")
    client.stream.write_line(arguments[1])
    _show_reply(client)


def request_dir(client, request: str) -> None:
    arguments = split_on_char(request, " ")
    path = arguments[1] if len(arguments) > 1 else ""
    client.stream.write_line("DIR")
    client.stream.write_line(path)
    _show_reply(client)


def request_get(client, request: str) -> None:
    arguments = split_on_char(request, " ")
    if len(arguments) != 2:
        _show(client, "Error expected 1 argument: GET <path>")
        return
    path = arguments[1]
    client.stream.write_line("GET")
    client.stream.write_line(path)

    first = client.stream.read_line()
    if not is_number(first):
        _show(client, first)
        return

    remaining = int(first)
    target = _local(client, path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "wb") as output:
        while remaining > 0:
            chunk = client.stream.read_exact(min(remaining, BUFFER_SIZE))
            output.write(chunk)
            remaining -= len(chunk)


def request_put(client, request: str) -> None:
    arguments = split_on_char(request, " ")
    if len(arguments) < 2:
        _show(client, "Error expected 1 argument: PUT <path>")
        return
    path = " ".join(arguments[1:])
    source = _local(client, path)
    if not source.exists():
        _show(client, "Error: no such file or directory")
        return
    if source.is_dir():
        raise IsADirectoryError(f"cannot upload a directory: {path}")

    client.stream.write_line("PUT")
    client.stream.write_line(path)
    client.stream.write_line(str(source.stat().st_size))
    with open(source, "rb") as data:
        while chunk := data.read(BUFFER_SIZE):
            client.stream.write(chunk)
    _show_reply(client)


def request_rename(client, request: str) -> None:
    arguments = split_on_char(request, " ")
    if len(arguments) != 3:
        _show(client, "Error: rename expected 2 arguments. REN <old path> <new path>")
        return
    client.stream.write_line("REN")
    client.stream.write_line(arguments[1])
    client.stream.write_line(arguments[2])
    _show_reply(client)


def request_quit(client, request: str) -> None:
    client.stream.write_line("QUIT")
    client.disconnect()


def _find_row(rows: list[str], kind: str, name: str) -> str | None:
    for row in rows:
        if row.startswith(kind) and split_on_char(row, "|")[1] == name:
            return row
    return None


def _sync_file(client, path: str, entry: Path, rows: list[str]) -> None:
    row = _find_row(rows, "F", entry.name)
    if row is None or file_is_newer(entry, row):
        _show(client, f"New file for server {path}/{entry.name}")
        request_put(client, f"PUT {path}/{entry.name}")


def _ensure_remote_dir(client, path: str, name: str, rows: list[str]) -> None:
    if _find_row(rows, "D", name) is None:
        _show(client, f"Add dir to server {name}")
        request_mkdir(client, f"MKDIR {path} {name}")


def _sync_directory(client, path: str) -> None:
    client.stream.write_line("DIR ")
    client.stream.write_line(path)
    rows = client.messages()
    # An empty directory is reported as a single empty line.
    if rows and rows[0] == "":
        rows = []

    for entry in sorted(_local(client, path).iterdir(), key=lambda p: p.name):
        if entry.is_dir():
            _ensure_remote_dir(client, path, entry.name, rows)
            _sync_directory(client, f"{path}/{entry.name}")
        else:
            _sync_file(client, path, entry, rows)


def request_sync(client, request: str) -> None:
    """Upload every local file and directory that the server lacks or has older."""
    _sync_directory(client, SYNC_START)


def request_unknown(client, request: str) -> None:
    client.stream.write_line(request)
    _show_reply(client)


_HANDLERS: dict[str, Handler] = {
    "GET": request_get,
    "PUT": request_put,
    "DIR": request_dir,
    "REN": request_rename,
    "DEL": request_delete,
    "MKDIR": request_mkdir,
    "QUIT": request_quit,
    "SYNC": request_sync,
}


def get_handler(arguments) -> Handler:
    """Return the handler for the command named by the first argument."""
    return _HANDLERS.get(arguments[0].upper(), request_unknown)