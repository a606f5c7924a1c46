"""文件传输模块 - 单个文件的接收与发送"""

import os
import socket
import logging
import tempfile
from pathlib import Path

from .errors import ConnectError, NoDestinationConfigured, ProtocolError, TransferIOError
from .framing import decode_message, encode_header
from .helpers import (
    NO_DESTINATION_RESPONSE, OK_RESPONSE, get_max_name_length, get_max_payload_size,
    get_response_size, get_socket_timeout, should_reject_unsafe_names
)

logger = logging.getLogger(__name__)


class TransferOutcome:
    """一次传输的结果"""

    SUCCESS = 'success'
    NO_DESTINATION = 'no_destination'
    IO_ERROR = 'io_error'
    PROTOCOL_ERROR = 'protocol_error'

    def __init__(self, status, stage=None, path=None, size=0, response=None, error=None):
        self.status = status
        self.stage = stage
        self.path = path
        self.size = size
        self.response = response
        self.error = error

    @property
    def ok(self):
        return self.status == self.SUCCESS

    @classmethod
    def failed(cls, error):
        if isinstance(error, NoDestinationConfigured):
            status = cls.NO_DESTINATION
        elif isinstance(error, ProtocolError):
            status = cls.PROTOCOL_ERROR
        else:
            status = cls.IO_ERROR
        return cls(status, stage=error.stage, error=error)

    def __repr__(self):
        if self.stage:
            return f'TransferOutcome({self.status}, stage={self.stage})'
        return f'TransferOutcome({self.status})'


def is_safe_name(name):
    """文件名只能是单个路径成分"""
    if not name or name in ('.', '..'):
        return False
    if '/' in name or '\\' in name or '\x00' in name:
        return False
    return not Path(name).is_absolute()


def _write_file(out_path, payload):
    """先写同目录下的临时文件再替换，覆盖已存在的同名文件"""
    fd, temp_path = tempfile.mkstemp(dir=out_path.parent, prefix='.hotdrop-')
    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(payload)
        os.replace(temp_path, out_path)
    except (OSError, ValueError):
        if os.path.exists(temp_path):
            os.remove(temp_path)
        raise


def receive_one(conn, destination, max_name_length=None, max_payload_size=None,
                reject_unsafe_names=None):
    """接收方：在已建立的连接上接收一个文件并保存到 destination

    destination 为 None 时不读取任何数据，直接回复错误信息。
    """
    if destination is None:
        error = NoDestinationConfigured()
        logger.error('Save directory has not been selected')
        try:
            conn.sendall(NO_DESTINATION_RESPONSE)
        except OSError as e:
            logger.error('Failed to send error response: %s', e)
        return TransferOutcome.failed(error)

    if max_name_length is None:
        max_name_length = get_max_name_length()
    if max_payload_size is None:
        max_payload_size = get_max_payload_size()
    if reject_unsafe_names is None:
        reject_unsafe_names = should_reject_unsafe_names()

    try:
        message = decode_message(conn, max_name_length, max_payload_size)
    except ProtocolError as e:
        logger.error('Malformed frame: %s', e)
        return TransferOutcome.failed(e)
    except OSError as e:
        logger.error('Failed to read frame: %s', e)
        return TransferOutcome.failed(TransferIOError('receive', str(e)))

    if reject_unsafe_names and not is_safe_name(message.name):
        logger.error('Rejected unsafe file name from peer: %r', message.name)
        return TransferOutcome.failed(ProtocolError('name', 'unsafe file name %r' % message.name))

    out_path = Path(destination) / message.name
    try:
        _write_file(out_path, message.payload)
    except (OSError, ValueError) as e:
        logger.error('Failed to save file %s: %s', out_path, e)
        return TransferOutcome.failed(TransferIOError('write', str(e)))
    logger.info('File saved: %s (%d bytes)', out_path, len(message.payload))

    try:
        conn.sendall(OK_RESPONSE)
    except OSError as e:
        logger.error('Failed to send response: %s', e)
        outcome = TransferOutcome.failed(TransferIOError('respond', str(e)))
        outcome.path = out_path
        outcome.size = len(message.payload)
        return outcome

    return TransferOutcome(TransferOutcome.SUCCESS, path=out_path, size=len(message.payload))


def send_one(server_address, file_path, response_size=None, timeout=None):
    """发送方：连接接收方，发送一个文件并读取应答"""
    if response_size is None:
        response_size = get_response_size()
    if timeout is None:
        timeout = get_socket_timeout()
    file_path = Path(file_path)
    logger.info('Sending %s to %s:%d', file_path, server_address[0], server_address[1])

    try:
        sock = socket.create_connection(server_address, timeout=timeout)
    except OSError as e:
        logger.error('Failed to connect to %s:%d: %s', server_address[0], server_address[1], e)
        return TransferOutcome.failed(ConnectError('connect', str(e)))

    with sock:
        try:
            payload = file_path.read_bytes()
        except OSError as e:
            logger.error('Failed to read %s: %s', file_path, e)
            return TransferOutcome.failed(TransferIOError('read', str(e)))

        name_bytes = file_path.name.encode('utf-8', errors='replace')
        try:
            header = encode_header(name_bytes, len(payload))
        except ProtocolError as e:
            logger.error('Cannot encode %s: %s', file_path, e)
            return TransferOutcome.failed(e)

        try:
            sock.sendall(header)
            sock.sendall(payload)
        except OSError as e:
            logger.error('Failed to send %s: %s', file_path, e)
            return TransferOutcome.failed(TransferIOError('send', str(e)))
        logger.info('Sent file %s (%d bytes)', file_path.name, len(payload))

        try:
            response = sock.recv(response_size)
        except OSError as e:
            logger.error('Failed to read response: %s', e)
            return TransferOutcome.failed(TransferIOError('response', str(e)))

    text = response.decode('utf-8', errors='replace')
    logger.info('Response from receiver: %s', text)
    return TransferOutcome(TransferOutcome.SUCCESS, path=file_path, size=len(payload), response=text)
