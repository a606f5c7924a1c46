"""帧编解码模块

一个帧承载一个文件：

    [u32 name_length][u32 payload_length][name (UTF-8)][payload]

两个长度字段均为大端无符号 32 位整数。编解码本身不做 I/O 之外的任何事，
解码按顺序精确读取每个字段，任何提前结束的读取都视为该连接的协议错误。
"""

import struct
from collections import namedtuple

from .errors import ProtocolError
from .helpers import recvn

HEADER = struct.Struct('>II')
MAX_FIELD_LENGTH = 0xFFFFFFFF

TransferMessage = namedtuple('TransferMessage', ['name', 'payload'])


def encode_header(name_bytes, payload_length):
    """编码帧头和文件名（不含文件内容）"""
    if not name_bytes:
        raise ProtocolError('name', 'file name is empty')
    if len(name_bytes) > MAX_FIELD_LENGTH:
        raise ProtocolError('name_length', 'file name too long: %d bytes' % len(name_bytes))
    if payload_length > MAX_FIELD_LENGTH:
        raise ProtocolError('payload_length', 'file too large: %d bytes' % payload_length)
    return HEADER.pack(len(name_bytes), payload_length) + name_bytes


def encode_message(name, payload):
    """编码一个完整的帧"""
    name_bytes = name.encode('utf-8')
    return encode_header(name_bytes, len(payload)) + bytes(payload)


def decode_message(sock, max_name_length=None, max_payload_size=None):
    """从套接字读取并解码一个帧

    max_name_length / max_payload_size 为 None 或 0 时不做限制；声明的长度超过
    限制时在分配缓冲区之前就抛出 ProtocolError。
    """
    raw = recvn(sock, 4)
    if raw is None:
        raise ProtocolError('name_length', 'connection closed before name length')
    (name_length,) = struct.unpack('>I', raw)

    raw = recvn(sock, 4)
    if raw is None:
        raise ProtocolError('payload_length', 'connection closed before payload length')
    (payload_length,) = struct.unpack('>I', raw)

    if max_name_length and name_length > max_name_length:
        raise ProtocolError('name_length',
                            'declared name length %d exceeds limit %d' % (name_length, max_name_length))
    if max_payload_size and payload_length > max_payload_size:
        raise ProtocolError('payload_length',
                            'declared payload length %d exceeds limit %d' % (payload_length, max_payload_size))

    name_bytes = recvn(sock, name_length)
    if name_bytes is None:
        raise ProtocolError('name', 'connection closed after %d-byte header' % HEADER.size)
    try:
        name = name_bytes.decode('utf-8')
    except UnicodeDecodeError as e:
        raise ProtocolError('name', 'file name is not valid UTF-8: %s' % e) from e

    payload = recvn(sock, payload_length)
    if payload is None:
        raise ProtocolError('payload', 'connection closed before %d payload bytes arrived' % payload_length)

    return TransferMessage(name, payload)
