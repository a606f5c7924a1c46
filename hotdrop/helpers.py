"""核心工具函数模块"""

from config_manager import ConfigManager

# 文件传输用的端口
FILE_TRANSFER_PORT = 8080

OK_RESPONSE = b'OK'
NO_DESTINATION_RESPONSE = b'ERROR: No save directory selected'

# 全局配置管理器实例
_config_manager = ConfigManager()


def get_config_manager():
    """获取当前配置管理器"""
    return _config_manager


def use_config_file(config_file):
    """切换到指定的配置文件"""
    global _config_manager
    _config_manager = ConfigManager(config_file)
    return _config_manager


def get_transfer_config():
    """获取传输配置"""
    return _config_manager.get_transfer_config()

def get_chunk_size():
    """获取接收块大小"""
    config = get_transfer_config()
    return config.get('chunk_size', 262144)  # 默认256KB

def get_queue_size():
    """获取待处理连接队列容量"""
    config = get_transfer_config()
    return config.get('queue_size', 10)

def get_poll_interval():
    """获取主循环轮询间隔（秒）"""
    config = get_transfer_config()
    return config.get('poll_interval', 0.1)

def get_response_size():
    """获取发送方读取应答的缓冲区大小"""
    config = get_transfer_config()
    return config.get('response_size', 1024)

def get_max_name_length():
    """获取文件名最大字节数"""
    config = get_transfer_config()
    return config.get('max_name_length', 4096)

def get_max_payload_size():
    """获取单个文件最大字节数，0 或 None 表示不限制"""
    config = get_transfer_config()
    return config.get('max_payload_size', 512 * 1024 * 1024)

def get_socket_timeout():
    """获取套接字超时，None 表示不超时"""
    config = get_transfer_config()
    return config.get('socket_timeout')

def should_reject_unsafe_names():
    """是否拒绝包含路径成分的文件名"""
    config = get_transfer_config()
    return config.get('reject_unsafe_names', True)


def recvn(sock, n, chunk_size=None):
    """接收指定数量的字节，连接提前关闭时返回 None"""
    chunk_size = chunk_size or get_chunk_size()
    buf = bytearray()
    while len(buf) < n:
        chunk = sock.recv(min(n - len(buf), chunk_size))
        if not chunk:
            return None
        buf += chunk
    return bytes(buf)
