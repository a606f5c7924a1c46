import os
import socket

import pytest

from hotdrop.errors import ConnectError
from hotdrop.file_transfer import TransferOutcome, is_safe_name, receive_one, send_one
from hotdrop.framing import encode_message
from hotdrop.helpers import NO_DESTINATION_RESPONSE, OK_RESPONSE


def test_receive_without_destination_reads_nothing(socket_pair):
    left, right = socket_pair
    frame = encode_message('a.txt', b'hello')
    left.sendall(frame)

    outcome = receive_one(right, None)

    assert outcome.status == TransferOutcome.NO_DESTINATION
    assert left.recv(1024) == NO_DESTINATION_RESPONSE
    # 帧仍然完整地留在套接字里
    assert right.recv(1024) == frame


def test_receive_writes_file(socket_pair, tmp_path):
    left, right = socket_pair
    left.sendall(encode_message('notes.txt', b'hello world'))

    outcome = receive_one(right, tmp_path)

    assert outcome.ok
    assert outcome.path == tmp_path / 'notes.txt'
    assert outcome.size == 11
    assert (tmp_path / 'notes.txt').read_bytes() == b'hello world'
    assert not (tmp_path / 'notes.txt.tmp').exists()
    assert left.recv(1024) == OK_RESPONSE


def test_receive_overwrites_existing_file(socket_pair, tmp_path):
    left, right = socket_pair
    (tmp_path / 'a.bin').write_bytes(b'old contents that are longer')
    left.sendall(encode_message('a.bin', b'new'))

    assert receive_one(right, tmp_path).ok
    assert (tmp_path / 'a.bin').read_bytes() == b'new'


def test_receive_rejects_path_traversal(socket_pair, tmp_path):
    left, right = socket_pair
    dest = tmp_path / 'dest'
    dest.mkdir()
    left.sendall(encode_message('../evil.txt', b'x'))

    outcome = receive_one(right, dest)

    assert outcome.status == TransferOutcome.PROTOCOL_ERROR
    assert outcome.stage == 'name'
    assert not (tmp_path / 'evil.txt').exists()


def test_receive_truncated_frame(socket_pair, tmp_path):
    left, right = socket_pair
    left.sendall(encode_message('a.txt', b'hello')[:-2])
    left.shutdown(socket.SHUT_WR)

    outcome = receive_one(right, tmp_path)

    assert outcome.status == TransferOutcome.PROTOCOL_ERROR
    assert outcome.stage == 'payload'
    assert list(tmp_path.iterdir()) == []


def test_receive_write_failure(socket_pair, tmp_path):
    left, right = socket_pair
    left.sendall(encode_message('a.txt', b'hello'))

    outcome = receive_one(right, tmp_path / 'does-not-exist')

    assert outcome.status == TransferOutcome.IO_ERROR
    assert outcome.stage == 'write'


@pytest.mark.parametrize('name, safe', [
    ('report.pdf', True),
    ('.hidden', True),
    ('', False),
    ('..', False),
    ('a/b.txt', False),
    ('a\\b.txt', False),
    ('/etc/passwd', False),
    ('bad\x00name', False),
])
def test_is_safe_name(name, safe):
    assert is_safe_name(name) is safe


@pytest.mark.parametrize('size', [0, 1, 70000])
def test_send_one_to_receiver(tmp_path, listener, serve_once, size):
    src_dir = tmp_path / 'src'
    dest = tmp_path / 'dest'
    src_dir.mkdir()
    dest.mkdir()
    src = src_dir / 'data.bin'
    src.write_bytes(os.urandom(size))

    thread, result = serve_once(listener, lambda conn: receive_one(conn, dest))
    outcome = send_one(listener.getsockname(), src)
    thread.join(5)

    assert outcome.ok
    assert outcome.response == 'OK'
    assert result['value'].ok
    assert (dest / 'data.bin').read_bytes() == src.read_bytes()


def test_send_one_connect_failure(tmp_path):
    src = tmp_path / 'a.txt'
    src.write_bytes(b'hello')
    with socket.socket() as s:
        s.bind(('127.0.0.1', 0))
        address = s.getsockname()

    outcome = send_one(address, src)

    assert outcome.status == TransferOutcome.IO_ERROR
    assert outcome.stage == 'connect'
    assert isinstance(outcome.error, ConnectError)


def test_send_one_missing_file(tmp_path, listener, serve_once):
    thread, _ = serve_once(listener, lambda conn: conn.recv(1))
    outcome = send_one(listener.getsockname(), tmp_path / 'missing.txt')
    thread.join(5)

    assert outcome.status == TransferOutcome.IO_ERROR
    assert outcome.stage == 'read'


def test_receive_leaves_sibling_tmp_file_alone(socket_pair, tmp_path):
    left, right = socket_pair
    (tmp_path / 'report.tmp').write_bytes(b'user data')
    left.sendall(encode_message('report', b'new'))

    assert receive_one(right, tmp_path).ok
    assert (tmp_path / 'report').read_bytes() == b'new'
    assert (tmp_path / 'report.tmp').read_bytes() == b'user data'
    assert sorted(p.name for p in tmp_path.iterdir()) == ['report', 'report.tmp']


def test_receive_longest_file_name(socket_pair, tmp_path):
    left, right = socket_pair
    name = 'a' * 255
    left.sendall(encode_message(name, b'x'))

    outcome = receive_one(right, tmp_path)

    assert outcome.ok
    assert (tmp_path / name).read_bytes() == b'x'


def test_receive_unsafe_names_allowed(socket_pair, tmp_path):
    left, right = socket_pair
    left.sendall(encode_message('plain.txt', b'data'))

    outcome = receive_one(right, tmp_path, reject_unsafe_names=False)

    assert outcome.ok
    assert (tmp_path / 'plain.txt').read_bytes() == b'data'


def test_receive_nul_name_without_rejection_is_write_error(socket_pair, tmp_path):
    left, right = socket_pair
    left.sendall(encode_message('bad\x00name', b'x'))

    outcome = receive_one(right, tmp_path, reject_unsafe_names=False)

    assert outcome.status == TransferOutcome.IO_ERROR
    assert outcome.stage == 'write'
    assert list(tmp_path.iterdir()) == []


def test_receive_reply_failure_after_save(socket_pair, tmp_path):
    left, right = socket_pair
    left.sendall(encode_message('late.txt', b'saved anyway'))
    left.close()

    outcome = receive_one(right, tmp_path)

    assert outcome.status == TransferOutcome.IO_ERROR
    assert outcome.stage == 'respond'
    assert outcome.path == tmp_path / 'late.txt'
    assert (tmp_path / 'late.txt').read_bytes() == b'saved anyway'
