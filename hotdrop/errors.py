"""异常定义模块"""


class HotDropError(Exception):
    """所有 HotDrop 异常的基类"""


class HotkeyParseError(HotDropError):
    """热键字符串格式错误或包含未知按键"""


class RegistrationError(HotDropError):
    """热键无法注册到系统"""


class TransferError(HotDropError):
    """单次传输失败，stage 指出失败的阶段"""

    def __init__(self, stage, message):
        super().__init__(message)
        self.stage = stage

    def __str__(self):
        return f'{self.stage}: {self.args[0]}'


class TransferIOError(TransferError):
    """本地文件或套接字读写失败"""


class ConnectError(TransferIOError):
    """无法连接到接收方"""


class ProtocolError(TransferError):
    """帧格式错误"""


class NoDestinationConfigured(TransferError):
    """接收方尚未选择保存目录"""

    def __init__(self, message='No save directory selected'):
        super().__init__('destination', message)
