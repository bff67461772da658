import io
import os
import time
from collections import deque

import pytest

from avansync import client_handlers as ch


class FakeStream:
    def __init__(self, incoming=b""):
        self.incoming = bytearray(incoming)
        self.sent = []

    def read_line(self):
        end = self.incoming.find(b"\n")
        raw = bytes(self.incoming[:end])
        del self.incoming[: end + 1]
        return raw.rstrip(b"\r").decode()

    def read_exact(self, size):
        assert len(self.incoming) >= size
        data = bytes(self.incoming[:size])
        del self.incoming[:size]
        return data

    def write_line(self, text):
        self.sent.append(text)

    def write(self, data):
        self.sent.append(bytes(data))


class FakeClient:
    def __init__(self, root_dir, replies=(), incoming=b""):
        self.root_dir = root_dir
        self.stream = FakeStream(incoming)
        self.stdout = io.StringIO()
        self.replies = deque(replies)
        self.connected = True

    def messages(self):
        return self.replies.popleft()

    def disconnect(self):
        self.connected = False

    def output(self):
        return self.stdout.getvalue().splitlines()


def _stamp(seconds):
    return time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(seconds))


@pytest.mark.parametrize(
    "text, expected",
    [("123", True), ("0", True), ("", False), ("12a", False), ("-1", False), (" 1", False)],
)
def test_is_number(text, expected):
    assert ch.is_number(text) is expected


def test_file_is_newer_compares_times(tmp_path):
    target = tmp_path / "a.txt"
    target.write_text("x")
    mtime = 1_600_000_000
    os.utime(target, (mtime, mtime))
    older_row = f"F|a.txt|{_stamp(mtime - 86400)}|1|"
    newer_row = f"F|a.txt|{_stamp(mtime + 86400)}|1|"
    assert ch.file_is_newer(target, older_row) is True
    assert ch.file_is_newer(target, newer_row) is False


def test_file_is_newer_bad_time_is_false(tmp_path):
    target = tmp_path / "a.txt"
    target.write_text("x")
    assert ch.file_is_newer(target, "F|a.txt|not a time|1|") is False


def test_file_is_newer_short_row_raises(tmp_path):
    target = tmp_path / "a.txt"
    target.write_text("x")
    with pytest.raises(IndexError):
        ch.file_is_newer(target, "F|a.txt")


def test_mkdir_wrong_arguments(tmp_path):
    client = FakeClient(tmp_path)
    ch.request_mkdir(client, "MKDIR only")
    assert client.stream.sent == []
    assert client.output() == ["Error: expected 2 arguments <parent dir> <dir name>"]


def test_mkdir_sends_request(tmp_path):
    client = FakeClient(tmp_path, replies=[["OK"]])
    ch.request_mkdir(client, "MKDIR parent child")
    assert client.stream.sent == ["MKDIR", "parent", "child"]
    assert client.output() == ["OK"]


def test_delete(tmp_path):
    client = FakeClient(tmp_path, replies=[["OK"]])
    ch.request_delete(client, "DEL some/file")
    assert client.stream.sent == ["DEL", "some/file"]
    assert client.output() == ["OK"]


def test_delete_wrong_arguments(tmp_path):
    client = FakeClient(tmp_path)
    ch.request_delete(client, "DEL")
    assert client.stream.sent == []
    assert client.output() == ["Expected 1 argument: DEL <path>"]


def test_dir_without_path_sends_empty(tmp_path):
    rows = ["F|a.txt|2021-01-01 00:00:00|3|", "D|sub|2021-01-01 00:00:00|4096|"]
    client = FakeClient(tmp_path, replies=[rows])
    ch.request_dir(client, "dir")
    assert client.stream.sent == ["DIR", ""]
    assert client.output() == rows


def test_get_writes_file(tmp_path):
    client = FakeClient(tmp_path, incoming=b"5\r\nhello")
    ch.request_get(client, "GET deep/dir/f.bin")
    assert client.stream.sent == ["GET", "deep/dir/f.bin"]
    assert (tmp_path / "deep" / "dir" / "f.bin").read_bytes() == b"hello"
    assert client.stream.incoming == bytearray()


def test_get_large_file_round_trip(tmp_path):
    payload = bytes(range(256)) * 5
    incoming = b"1280\r\n" + payload
    client = FakeClient(tmp_path, incoming=incoming)
    ch.request_get(client, "GET big.bin")
    assert client.stream.sent == ["GET", "big.bin"]
    assert client.stream.incoming == bytearray()
    assert client.output() == []
    written = (tmp_path / "big.bin").read_bytes()
    assert len(written) == 1280
    assert written == payload


def test_get_error_is_shown(tmp_path):
    client = FakeClient(tmp_path, incoming=b"Error: no such file or directory\r\n")
    ch.request_get(client, "GET missing.txt")
    assert client.output() == ["Error: no such file or directory"]
    assert not (tmp_path / "missing.txt").exists()


def test_get_wrong_arguments(tmp_path):
    client = FakeClient(tmp_path)
    ch.request_get(client, "GET")
    assert client.output() == ["Error expected 1 argument: GET <path>"]


def test_put_sends_file(tmp_path):
    (tmp_path / "f.txt").write_bytes(b"hello")
    client = FakeClient(tmp_path, replies=[["OK"]])
    ch.request_put(client, "PUT f.txt")
    assert client.stream.sent == ["PUT", "f.txt", "5", b"hello"]
    assert client.output() == ["OK"]


def test_put_joins_spaced_path(tmp_path):
    (tmp_path / "my file.txt").write_bytes(b"ab")
    client = FakeClient(tmp_path, replies=[["OK"]])
    ch.request_put(client, "put my file.txt")
    assert client.stream.sent[:3] == ["PUT", "my file.txt", "2"]


def test_put_missing_file(tmp_path):
    client = FakeClient(tmp_path)
    ch.request_put(client, "PUT nope.txt")
    assert client.stream.sent == []
    assert client.output() == ["Error: no such file or directory"]


def test_put_wrong_arguments(tmp_path):
    client = FakeClient(tmp_path)
    ch.request_put(client, "PUT")
    assert client.output() == ["Error expected 1 argument: PUT <path>"]


def test_rename(tmp_path):
    client = FakeClient(tmp_path, replies=[["OK"]])
    ch.request_rename(client, "REN old new")
    assert client.stream.sent == ["REN", "old", "new"]
    assert client.output() == ["OK"]


def test_rename_wrong_arguments(tmp_path):
    client = FakeClient(tmp_path)
    ch.request_rename(client, "REN old")
    assert client.output() == ["Error: rename expected 2 arguments. REN <old path> <new path>"]


def test_quit_disconnects(tmp_path):
    client = FakeClient(tmp_path)
    ch.request_quit(client, "quit")
    assert client.stream.sent == ["QUIT"]
    assert client.connected is False


def test_unknown_sends_raw_request(tmp_path):
    client = FakeClient(tmp_path, replies=[["INFO was not recognized."]])
    ch.request_unknown(client, "info extra")
    assert client.stream.sent == ["info extra"]
    assert client.output() == ["INFO was not recognized."]


@pytest.mark.parametrize(
    "command, handler",
    [
        ("get", ch.request_get),
        ("PUT", ch.request_put),
        ("Dir", ch.request_dir),
        ("ren", ch.request_rename),
        ("del", ch.request_delete),
        ("mkdir", ch.request_mkdir),
        ("quit", ch.request_quit),
        ("sync", ch.request_sync),
        ("info", ch.request_unknown),
    ],
)
def test_get_handler(command, handler):
    assert ch.get_handler([command, "x"]) is handler


def test_get_handler_empty_raises():
    with pytest.raises(IndexError):
        ch.get_handler([])


def test_sync_uploads_everything_to_empty_server(tmp_path):
    (tmp_path / "a.txt").write_bytes(b"abc")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "b.txt").write_bytes(b"de")
    replies = [[""], ["OK"], ["OK"], [""], ["OK"]]
    client = FakeClient(tmp_path, replies=replies)
    ch.request_sync(client, "sync")
    assert client.stream.sent == [
        "DIR ", "./",
        "PUT", ".//a.txt", "3", b"abc",
        "MKDIR", "./", "sub",
        "DIR ", ".//sub",
        "PUT", ".//sub/b.txt", "2", b"de",
    ]
    assert not client.replies


def test_sync_skips_up_to_date_files(tmp_path):
    target = tmp_path / "a.txt"
    target.write_bytes(b"abc")
    mtime = 1_600_000_000
    os.utime(target, (mtime, mtime))
    row = f"F|a.txt|{_stamp(mtime + 86400)}|3|"
    client = FakeClient(tmp_path, replies=[[row]])
    ch.request_sync(client, "sync")
    assert client.stream.sent == ["DIR ", "./"]
    assert client.output() == []


def test_sync_uploads_newer_file(tmp_path):
    target = tmp_path / "a.txt"
    target.write_bytes(b"abc")
    mtime = 1_600_000_000
    os.utime(target, (mtime, mtime))
    row = f"F|a.txt|{_stamp(mtime - 86400)}|3|"
    client = FakeClient(tmp_path, replies=[[row], ["OK"]])
    ch.request_sync(client, "sync")
    assert client.stream.sent[2:] == ["PUT", ".//a.txt", "3", b"abc"]
    assert client.output()[0] == "New file for server .//a.txt"