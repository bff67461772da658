# avansync

A small file synchronisation tool made of a TCP server and an interactive
command-line client. The server serves a root directory over a simple
CRLF-terminated text protocol; the client runs commands against it and can
upload its own local directory tree to the server.

No third-party libraries are needed.

## Installation

```
pip install .
```

For the tests:

```
pip install ".[test]"
pytest
```

## Running the server

```
avansync-server [--root DIR] [--port PORT] [--host HOST]
```

By default the server listens on port 12345 on all interfaces and serves
`./server_dir/`. It handles one client at a time and greets each one with
`Welcome to AvanSync server 1.0`. Stop it with Ctrl-C.

## Running the client

```
avansync-client [--host HOST] [--port PORT] [--root DIR]
```

By default the client connects to `localhost:12345` and works from
`./client_dir/`. It prints the server's greeting, then shows the
`avansync> ` prompt and reads one command per line until `QUIT` or the end
of input. If the connection cannot be made it prints
`Error: could not connect to server` and exits with status 1.

## Commands

Command names are case-insensitive. Arguments are separated by single spaces
and paths are relative to the server's root (and, for `GET`, `PUT` and
`SYNC`, to the client's root as well).

| Command                     | What it does                                                       |
|-----------------------------|--------------------------------------------------------------------|
| `DIR [path]`                | List a server directory as `kind\|name\|modified\|size\|` rows      |
| `GET <path>`                | Download a file from the server into the client directory          |
| `PUT <path>`                | Upload a file from the client directory to the server              |
| `REN <old path> <new path>` | Rename a file or directory on the server                           |
| `DEL <path>`                | Delete a file, or a directory with everything in it, on the server |
| `MKDIR <parent> <name>`     | Create a directory inside an existing server directory             |
| `SYNC`                      | Upload new or newer local files and create missing directories     |
| `INFO`                      | Show the server's version line, `AvanSync server 1.0`              |
| `QUIT`                      | End the session                                                    |

In a `DIR` listing, entries are sorted by name; `D` marks a directory, `F`
a regular file and `*` anything else. The modification time is printed as
`YYYY-MM-DD HH:MM:SS` at one hour ahead of UTC. An empty directory is shown
as a single empty line.

`PUT` takes everything after the command as the path, so a path may contain
spaces. `GET` creates any missing local directories before writing the file.

`SYNC` walks the client directory. For every local directory the server
does not list, it sends `MKDIR`; for every local file the server lacks, or
whose local modification time is later than the one in the server's
listing, it sends `PUT`. It prints a line for each thing it sends.

Any other command is passed to the server unchanged, and the server replies
with `<command> was not recognized.`

Server replies are `OK` on success, or an error line such as
`Error: no such file or directory`, `Error: no such directory`,
`Error: no permission`, `Error: not enough disk space` or
`Something went wrong`.

## Using it from Python

- `avansync.server.Server(root_dir, port, host)` listens for clients;
  `run()` serves them forever, `handle_client()` serves exactly one, and
  `close()` stops listening. It is a context manager and its `address`
  property gives the host and port it is bound to.
  `avansync.server.ServerSession` is the conversation with one client.
- `avansync.client.Client(host, port, root_dir, stdin, stdout)` connects to
  a server; `run()` reads commands from `stdin`, `handle_request(line)` runs
  one command, `messages()` returns the lines of the server's next reply,
  and `close()` closes the connection.
- `avansync.protocol.LineStream` wraps a socket with `read_line`,
  `read_exact`, `write_line`, `write`, `has_pending` and `close`;
  `avansync.protocol.split_on_char` splits a request line into fields.
- `avansync.server_handlers` and `avansync.client_handlers` hold one handler
  per command, and each has a `get_handler(arguments)` function that picks
  the handler for a split request line.

## What it does not do

- The server serves one client at a time; others wait until it is done.
- There is no authentication or encryption: anyone who can reach the port
  can read, change and delete files under the server's root.
- `SYNC` only pushes from client to server. It never downloads, and it
  never deletes anything on either side.