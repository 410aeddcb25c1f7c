from __future__ import annotations

import socket

import pytest

from ssftp.cli import bench_main, client_main, server_main
from ssftp.net import format_socket_addr, parse_socket_addr


def host_arg(server) -> str:
    return format_socket_addr(server.address)


def test_parse_socket_addr():
    assert parse_socket_addr("127.0.0.1:8080") == ("127.0.0.1", 8080)
    assert parse_socket_addr("[::1]:7878") == ("::1", 7878)


@pytest.mark.parametrize("s", ["localhost:80", "127.0.0.1", "127.0.0.1:x", "127.0.0.1:70000", ":80"])
def test_parse_socket_addr_rejects(s):
    with pytest.raises(ValueError):
        parse_socket_addr(s)


def test_format_socket_addr():
    assert format_socket_addr(("::1", 1, 0, 0)) == "[::1]:1"
    assert format_socket_addr(("10.0.0.1", 2)) == "10.0.0.1:2"


def test_get(server, tmp_path, capsys):
    local = tmp_path / "out.txt"
    assert client_main([host_arg(server), "get", "/hello.txt", str(local)]) == 0
    assert local.read_bytes() == b"hi"
    assert f"The file with 2 bytes successfully downloaded to {local}" in capsys.readouterr().out


def test_dir(server, capsys):
    assert client_main([host_arg(server), "dir", "/sub"]) == 0
    assert sorted(capsys.readouterr().out.splitlines()) == ["a.txt", "b/"]


def test_info(server, capsys):
    assert client_main([host_arg(server), "info", "/hello.txt"]) == 0
    assert client_main([host_arg(server), "info", "/sub"]) == 0
    out = capsys.readouterr().out
    assert "INFO: /hello.txt is a file with 2 bytes" in out
    assert "INFO: /sub is a directory" in out


def test_not_ok_status(server, capsys):
    assert client_main([host_arg(server), "info", "/missing"]) == 0
    assert "Response status code is not OK: NOT-EXIST" in capsys.readouterr().out


def test_bad_remote_path(server):
    assert client_main([host_arg(server), "info", "relative"]) == 1


def test_connection_error():
    listener = socket.create_server(("127.0.0.1", 0))
    port = listener.getsockname()[1]
    listener.close()
    assert client_main([f"127.0.0.1:{port}", "--timeout", "5", "info", "/"]) == 1


def test_client_rejects_bad_address():
    with pytest.raises(SystemExit):
        client_main(["nowhere", "info", "/"])


def test_server_rejects_missing_directory(tmp_path):
    with pytest.raises(SystemExit):
        server_main(["127.0.0.1:0", str(tmp_path / "missing")])


def test_bench(capsys):
    assert bench_main(["--clients", "6", "--size-bytes", "10000", "--thread", "2", "--json"]) == 0
    assert '"failures": 0' in capsys.readouterr().out


def test_get_without_content_length_reports_bytes_written(canned_server, tmp_path, capsys):
    client = canned_server(b"OK\n{}\npayload")
    host = format_socket_addr(client.server_addr)
    local = tmp_path / "out.bin"
    assert client_main([host, "get", "/x", str(local)]) == 0
    assert local.read_bytes() == b"payload"
    assert f"The file with 7 bytes successfully downloaded to {local}" in capsys.readouterr().out
