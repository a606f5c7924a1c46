import socket
import threading

import pytest

from hotdrop.network_services import create_listening_socket


class FakeHotkeySource:
    """按脚本触发的热键事件源"""

    def __init__(self):
        self.bindings = {}
        self.pending = []
        self.closed = False
        self._next_id = 100

    def register(self, binding):
        hotkey_id = self._next_id
        self._next_id += 1
        self.bindings[hotkey_id] = binding
        return hotkey_id

    def trigger(self, hotkey_id):
        self.pending.append(hotkey_id)

    def poll(self):
        if self.pending:
            return self.pending.pop(0)
        return None

    def close(self):
        self.closed = True


class FakePicker:
    """依次返回预设结果的选择器"""

    def __init__(self, folders=(), files=()):
        self.folders = list(folders)
        self.files = list(files)
        self.folder_calls = 0
        self.file_calls = 0

    def pick_folder(self):
        self.folder_calls += 1
        return self.folders.pop(0) if self.folders else None

    def pick_file(self):
        self.file_calls += 1
        return self.files.pop(0) if self.files else None


@pytest.fixture
def hotkeys():
    return FakeHotkeySource()


@pytest.fixture
def make_picker():
    return FakePicker


@pytest.fixture
def socket_pair():
    left, right = socket.socketpair()
    yield left, right
    left.close()
    right.close()


@pytest.fixture
def listener():
    sock = create_listening_socket('127.0.0.1', 0)
    yield sock
    sock.close()


@pytest.fixture
def serve_once():
    """在后台线程中受理一个连接并交给 handler 处理"""
    return _serve_once


def _serve_once(listener, handler):
    result = {}

    def run():
        conn, _ = listener.accept()
        with conn:
            result['value'] = handler(conn)

    t = threading.Thread(target=run, daemon=True)
    t.start()
    return t, result
