"""网络服务模块 - 连接受理线程以及接收方/发送方的启动流程"""

import queue
import socket
import logging
import threading

from .coordinator import ReceiverCoordinator, SenderCoordinator
from .helpers import FILE_TRANSFER_PORT, get_queue_size
from .hotkeys import HotkeySource, parse_hotkey

ACCEPT_TIMEOUT = 0.5

logger = logging.getLogger(__name__)


def create_listening_socket(bind='0.0.0.0', port=FILE_TRANSFER_PORT):
    """创建监听套接字，绑定失败时抛出 OSError"""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((bind, port))
        sock.listen()
    except OSError:
        sock.close()
        raise
    return sock


class ConnectionIntake(threading.Thread):
    """持续受理连接并放入有界队列

    队列满时 put 会阻塞受理循环，连接不会被丢弃。
    """

    def __init__(self, listener, connections, log_callback=None):
        super().__init__(name='connection-intake', daemon=True)
        self.listener = listener
        self.connections = connections
        self.log = log_callback or logging.info
        self._stopped = threading.Event()
        self.listener.settimeout(ACCEPT_TIMEOUT)

    def run(self):
        while not self._stopped.is_set():
            try:
                conn, addr = self.listener.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._stopped.is_set():
                    break
                logger.error('Failed to accept connection: %s', e)
                self._stopped.wait(ACCEPT_TIMEOUT)
                continue

            self.log('New connection: %s:%d' % (addr[0], addr[1]))
            if not self._enqueue(conn, addr):
                conn.close()
                break

    def _enqueue(self, conn, addr):
        while not self._stopped.is_set():
            try:
                self.connections.put((conn, addr), timeout=ACCEPT_TIMEOUT)
                return True
            except queue.Full:
                logger.debug('Connection queue full, holding %s:%d', addr[0], addr[1])
        return False

    def stop(self):
        self._stopped.set()


def _close_pending(connections):
    """关闭尚未处理的连接"""
    while True:
        try:
            conn, _ = connections.get_nowait()
        except queue.Empty:
            return
        conn.close()


def run_server(hotkey_str, picker, port=FILE_TRANSFER_PORT, bind='0.0.0.0', hotkeys=None,
               stop_event=None, log_callback=None):
    """运行接收方模式"""
    log_func = log_callback or logging.info
    binding = parse_hotkey(hotkey_str)
    log_func('Receiver mode, hotkey: %s' % binding)

    listener = create_listening_socket(bind, port)
    hotkeys = hotkeys or HotkeySource()
    intake = None
    try:
        hotkey_id = hotkeys.register(binding)
        log_func('Listening on %s:%d' % (bind, listener.getsockname()[1]))

        connections = queue.Queue(maxsize=get_queue_size())
        intake = ConnectionIntake(listener, connections, log_callback)
        intake.start()

        log_func('Press %s to choose where received files are saved' % binding)
        coordinator = ReceiverCoordinator(hotkeys, hotkey_id, picker, connections,
                                          log_callback=log_callback)
        coordinator.run(stop_event)
    finally:
        if intake is not None:
            intake.stop()
            intake.join()
            _close_pending(intake.connections)
        listener.close()
        hotkeys.close()


def run_client(server, hotkey_str, picker, port=FILE_TRANSFER_PORT, hotkeys=None,
               stop_event=None, log_callback=None):
    """运行发送方模式"""
    log_func = log_callback or logging.info
    binding = parse_hotkey(hotkey_str)
    server_address = (server or 'localhost', port)
    log_func('Sender mode, hotkey: %s' % binding)
    log_func('Receiver address: %s:%d' % server_address)

    hotkeys = hotkeys or HotkeySource()
    try:
        hotkey_id = hotkeys.register(binding)
        log_func('Press %s to choose a file to send' % binding)
        coordinator = SenderCoordinator(hotkeys, hotkey_id, picker, server_address,
                                        log_callback=log_callback)
        coordinator.run(stop_event)
    finally:
        hotkeys.close()
