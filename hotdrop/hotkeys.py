"""全局热键模块

热键字符串形如 "ctrl+shift+r"：零个或多个修饰键加上恰好一个按键。
HotkeySource 基于 pynput，在监听线程中把触发的热键 ID 放入队列，
主循环通过 poll() 非阻塞地取出。
"""

import queue
import logging
import threading
import string
from dataclasses import dataclass

from .errors import HotkeyParseError, RegistrationError

logger = logging.getLogger(__name__)

MODIFIER_ALIASES = {
    'ctrl': 'ctrl',
    'control': 'ctrl',
    'shift': 'shift',
    'alt': 'alt',
    'meta': 'cmd',
    'cmd': 'cmd',
    'command': 'cmd',
    'win': 'cmd',
    'windows': 'cmd',
}
MODIFIER_ORDER = ('ctrl', 'shift', 'alt', 'cmd')

FUNCTION_KEYS = frozenset('f%d' % i for i in range(1, 13))
KEYS = frozenset(string.ascii_lowercase) | frozenset(string.digits) | FUNCTION_KEYS


@dataclass(frozen=True)
class HotkeyBinding:
    modifiers: frozenset
    key: str

    def __str__(self):
        parts = [m for m in MODIFIER_ORDER if m in self.modifiers]
        return '+'.join(parts + [self.key])

    def to_pynput(self):
        """转换为 pynput.keyboard.HotKey.parse 接受的格式"""
        parts = ['<%s>' % m for m in MODIFIER_ORDER if m in self.modifiers]
        key = '<%s>' % self.key if self.key in FUNCTION_KEYS else self.key
        return '+'.join(parts + [key])


def parse_hotkey(hotkey_str):
    """解析热键字符串"""
    modifiers = set()
    key = None

    for part in hotkey_str.split('+'):
        token = part.strip().lower()
        if not token:
            raise HotkeyParseError('Empty key in hotkey %r' % hotkey_str)
        if token in MODIFIER_ALIASES:
            modifiers.add(MODIFIER_ALIASES[token])
        elif token in KEYS:
            if key is not None:
                raise HotkeyParseError('Hotkey %r has more than one key (%s, %s)' % (hotkey_str, key, token))
            key = token
        else:
            raise HotkeyParseError('Unknown key: %s' % token)

    if key is None:
        raise HotkeyParseError('No key specified in hotkey %r' % hotkey_str)
    return HotkeyBinding(frozenset(modifiers), key)


class HotkeySource:
    """基于 pynput 的全局热键事件源"""

    def __init__(self):
        self._events = queue.Queue()
        self._hotkeys = []
        self._next_id = 1
        self._lock = threading.Lock()
        self._listener = None

    def register(self, binding):
        """注册热键，返回用于匹配事件的 ID"""
        try:
            from pynput import keyboard
        except ImportError as e:
            raise RegistrationError('Global hotkeys are not available: %s' % e) from e

        with self._lock:
            hotkey_id = self._next_id
            self._next_id += 1

        try:
            hotkey = keyboard.HotKey(keyboard.HotKey.parse(binding.to_pynput()),
                                     lambda: self._events.put(hotkey_id))
        except ValueError as e:
            raise RegistrationError('Cannot register hotkey %s: %s' % (binding, e)) from e

        with self._lock:
            self._hotkeys.append((hotkey_id, hotkey))
            if self._listener is None:
                try:
                    self._listener = keyboard.Listener(on_press=self._on_press, on_release=self._on_release)
                    self._listener.start()
                except Exception as e:
                    self._listener = None
                    raise RegistrationError('Cannot start keyboard listener: %s' % e) from e
        logger.debug('Registered hotkey %s as id=%d', binding, hotkey_id)
        return hotkey_id

    def poll(self):
        """非阻塞地取出一个触发的热键 ID，没有时返回 None"""
        try:
            return self._events.get_nowait()
        except queue.Empty:
            return None

    def close(self):
        with self._lock:
            if self._listener is not None:
                self._listener.stop()
                self._listener = None
            self._hotkeys = []

    def _on_press(self, key):
        listener = self._listener
        if listener is None:
            return
        canonical = listener.canonical(key)
        for _, hotkey in list(self._hotkeys):
            hotkey.press(canonical)

    def _on_release(self, key):
        listener = self._listener
        if listener is None:
            return
        canonical = listener.canonical(key)
        for _, hotkey in list(self._hotkeys):
            hotkey.release(canonical)
