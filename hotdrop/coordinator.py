"""事件协调模块

主循环在同一个线程里轮流检查热键事件和待处理连接，两者都是非阻塞的，
没有事件时等待一个轮询间隔后再继续。
"""

import queue
import logging
import threading
from pathlib import Path

from utils import format_size

from . import file_transfer
from .helpers import get_poll_interval, get_socket_timeout


class PendingDestination:
    """加锁保护的保存目录"""

    def __init__(self, path=None):
        self._lock = threading.Lock()
        self._path = Path(path) if path is not None else None

    def get(self):
        with self._lock:
            return self._path

    def set(self, path):
        with self._lock:
            self._path = Path(path)


class _Coordinator:
    """热键轮询和主循环的公共部分"""

    def __init__(self, hotkeys, hotkey_id, picker, poll_interval=None, log_callback=None):
        self.hotkeys = hotkeys
        self.hotkey_id = hotkey_id
        self.picker = picker
        self.poll_interval = get_poll_interval() if poll_interval is None else poll_interval
        self.log = log_callback or logging.info

    def poll_hotkey(self):
        """检查一次热键，匹配时执行本角色的动作"""
        trigger = self.hotkeys.poll()
        if trigger is None:
            return False
        if trigger != self.hotkey_id:
            logging.debug('Ignoring hotkey id=%s (registered id=%s)', trigger, self.hotkey_id)
            return False
        self.log('Hotkey pressed')
        self.on_trigger()
        return True

    def on_trigger(self):
        raise NotImplementedError

    def tick(self):
        raise NotImplementedError

    def run(self, stop_event=None):
        """运行主循环，直到 stop_event 被设置"""
        stop_event = stop_event or threading.Event()
        while not stop_event.is_set():
            self.tick()
            stop_event.wait(self.poll_interval)


class ReceiverCoordinator(_Coordinator):
    """接收方主循环：热键选择保存目录，依次处理排队的连接"""

    def __init__(self, hotkeys, hotkey_id, picker, connections, destination=None,
                 poll_interval=None, log_callback=None):
        super().__init__(hotkeys, hotkey_id, picker, poll_interval, log_callback)
        self.connections = connections
        if not isinstance(destination, PendingDestination):
            destination = PendingDestination(destination)
        self.destination = destination

    def on_trigger(self):
        path = self.picker.pick_folder()
        if not path:
            self.log('Folder selection cancelled')
            return
        self.destination.set(path)
        self.log('Save directory selected: %s' % path)

    def poll_connection(self):
        """取出一个待处理连接并接收文件，队列为空时返回 None"""
        try:
            conn, addr = self.connections.get_nowait()
        except queue.Empty:
            return None

        self.log('Starting transfer from %s:%d' % (addr[0], addr[1]))
        with conn:
            timeout = get_socket_timeout()
            if timeout is not None:
                conn.settimeout(timeout)
            outcome = file_transfer.receive_one(conn, self.destination.get())

        if outcome.ok:
            self.log('Received %s (%s) from %s' % (outcome.path, format_size(outcome.size), addr[0]))
        else:
            self.log('Transfer from %s failed: %s (%s)' % (addr[0], outcome.status, outcome.error))
        return outcome

    def tick(self):
        self.poll_hotkey()
        return self.poll_connection()


class SenderCoordinator(_Coordinator):
    """发送方主循环：热键选择文件并立即发送"""

    def __init__(self, hotkeys, hotkey_id, picker, server_address,
                 poll_interval=None, log_callback=None):
        super().__init__(hotkeys, hotkey_id, picker, poll_interval, log_callback)
        self.server_address = server_address
        self.last_outcome = None

    def on_trigger(self):
        path = self.picker.pick_file()
        if not path:
            self.log('File selection cancelled')
            return
        self.log('File selected: %s' % path)
        outcome = file_transfer.send_one(self.server_address, path)
        if outcome.ok:
            self.log('Transfer finished, receiver replied: %s' % outcome.response)
        else:
            self.log('Transfer failed: %s (%s)' % (outcome.status, outcome.error))
        self.last_outcome = outcome

    def tick(self):
        return self.poll_hotkey()
