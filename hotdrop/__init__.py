"""核心功能包初始化文件"""

from .errors import (
    HotDropError, HotkeyParseError, RegistrationError, TransferError,
    TransferIOError, ConnectError, ProtocolError, NoDestinationConfigured
)
from .helpers import FILE_TRANSFER_PORT, recvn
from .framing import TransferMessage, encode_header, encode_message, decode_message
from .file_transfer import TransferOutcome, receive_one, send_one
from .hotkeys import HotkeyBinding, HotkeySource, parse_hotkey
from .coordinator import PendingDestination, ReceiverCoordinator, SenderCoordinator
from .network_services import ConnectionIntake, create_listening_socket, run_server, run_client

__all__ = [
    'HotDropError', 'HotkeyParseError', 'RegistrationError', 'TransferError',
    'TransferIOError', 'ConnectError', 'ProtocolError', 'NoDestinationConfigured',
    'FILE_TRANSFER_PORT', 'recvn',
    'TransferMessage', 'encode_header', 'encode_message', 'decode_message',
    'TransferOutcome', 'receive_one', 'send_one',
    'HotkeyBinding', 'HotkeySource', 'parse_hotkey',
    'PendingDestination', 'ReceiverCoordinator', 'SenderCoordinator',
    'ConnectionIntake', 'create_listening_socket', 'run_server', 'run_client'
]
