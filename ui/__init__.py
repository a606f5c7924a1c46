"""UI模块包初始化文件"""

from .pickers import QtPicker

__all__ = ['QtPicker']
