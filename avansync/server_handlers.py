"""Server-side handlers for the commands of the sync protocol."""

from __future__ import annotations

import os
import re
import shutil
import stat
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

BUFFER_SIZE = 512
INFO_TEXT = "AvanSync server 1.0"
# The listing reports times at a fixed offset of one hour from UTC.
_TIME_OFFSET_SECONDS = 3600
_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")

Handler = Callable[[Any, list], None]


def _resolve(session, relative: str) -> Path:
    return Path(f"{os.fspath(session.server.root_dir)}/{relative}")


def _owner_can(path: Path, bit: int) -> bool:
    return bool(path.stat().st_mode & bit)


def _parse_int(text: str) -> int:
    match = _INT_PREFIX.match(text)
    if match is None:
        raise ValueError(f"invalid number: {text!r}")
    return int(match.group(1))


def entry_kind(path) -> str:
    """Return 'D' for a directory, 'F' for a regular file and '*' otherwise."""
    path = Path(path)
    if path.is_dir():
        return "D"
    if path.is_file():
        return "F"
    return "*"


def format_mtime(path) -> str:
    """Return the modification time of ``path`` as the listing shows it."""
    seconds = int(os.stat(path).st_mtime) + _TIME_OFFSET_SECONDS
    return datetime.fromtimestamp(seconds, timezone.utc).strftime(_TIME_FORMAT)


def format_entry(path) -> str:
    """Return one listing row: kind|name|time|size|."""
    path = Path(path)
    size = os.stat(path).st_size
    return f"{entry_kind(path)}|{path.name}|{format_mtime(path)}|{size}|"


def handle_info(session, arguments) -> None:
    session.stream.write_line(INFO_TEXT)


def handle_dir(session, arguments) -> None:
    path = _resolve(session, session.read_line())
    if not path.is_dir():
        session.stream.write_line("Error: no such directory")
        return

    rows = [format_entry(entry) for entry in sorted(path.iterdir(), key=lambda p: p.name)]
    if not rows:
        session.stream.write_line("")
        return
    for row in rows:
        session.stream.write_line(row)


def handle_mkdir(session, arguments) -> None:
    path = _resolve(session, session.read_line())
    name = session.read_line()

    if not path.is_dir():
        session.stream.write_line("Error: no such directory")
        return
    if not _owner_can(path, stat.S_IWUSR):
        session.stream.write_line("Error: no permission")
        return

    target = Path(f"{os.fspath(path)}/{name}")
    if target.exists():
        session.stream.write_line("Something went wrong")
        return
    try:
        target.mkdir(parents=True)
    except OSError:
        session.stream.write_line("Something went wrong")
        return
    session.stream.write_line("OK")


def handle_rename(session, arguments) -> None:
    path = _resolve(session, session.read_line())
    new_path = _resolve(session, session.read_line())

    if not path.exists():
        session.stream.write_line("Error: no such file or directory")
        return
    if not _owner_can(path, stat.S_IWUSR):
        session.stream.write_line("Error: no permission")
        return

    os.replace(path, new_path)
    session.stream.write_line("OK")


def handle_delete(session, arguments) -> None:
    path = _resolve(session, session.read_line())

    if not path.exists():
        session.stream.write_line("Error: no such file or directory")
        return
    if not _owner_can(path, stat.S_IWUSR):
        session.stream.write_line("Error: no permission")
        return

    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
    except OSError:
        session.stream.write_line("Something went wrong")
        return
    session.stream.write_line("OK")


def handle_put(session, arguments) -> None:
    path = _resolve(session, session.read_line())
    file_size = _parse_int(session.read_line())

    response = "OK"
    should_write = True

    if shutil.disk_usage("/").free < file_size:
        response = "Error: not enough disk space"
        should_write = False
    if path.exists() and not _owner_can(path, stat.S_IWUSR):
        response = "Error: no permission"
        should_write = False

    path.parent.mkdir(parents=True, exist_ok=True)

    remaining = file_size
    if should_write:
        with open(path, "wb") as target:
            while remaining > 0:
                chunk = session.stream.read_exact(min(remaining, BUFFER_SIZE))
                target.write(chunk)
                remaining -= len(chunk)
    else:
        while remaining > 0:
            remaining -= len(session.stream.read_exact(min(remaining, BUFFER_SIZE)))

    session.stream.write_line(response)


def handle_get(session, arguments) -> None:
    path = _resolve(session, session.read_line())

    if not path.exists() or path.is_dir():
        session.stream.write_line("Error: no such file or directory")
        return
    if not _owner_can(path, stat.S_IRUSR):
        session.stream.write_line("Error: no permission")
        return

    session.stream.write_line(str(path.stat().st_size))
    with open(path, "rb") as source:
        while chunk := source.read(BUFFER_SIZE):
            session.stream.write(chunk)


def handle_quit(session, arguments) -> None:
    session.stream.write_line("Bye.")
    print(f"will disconnect from client {session.peer}")
    session.disconnect()


def handle_unknown(session, arguments) -> None:
    command = arguments[0]
    print(f"Unknown command {command}")
    session.stream.write_line(f"{command} was not recognized.")


_HANDLERS: dict[str, Handler] = {
    "INFO": handle_info,
    "DIR": handle_dir,
    "MKDIR": handle_mkdir,
    "REN": handle_rename,
    "DEL": handle_delete,
    "PUT": handle_put,
    "GET": handle_get,
    "QUIT": handle_quit,
}


def get_handler(arguments) -> Handler:
    """Return the handler for the command named by the first argument."""
    return _HANDLERS.get(arguments[0].upper(), handle_unknown)