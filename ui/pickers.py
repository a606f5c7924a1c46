"""文件/文件夹选择对话框"""

import sys
from pathlib import Path
from PyQt5 import QtWidgets

FOLDER_TITLE = 'Select a folder to save received files'
FILE_TITLE = 'Select a file to send'


def _ensure_app():
    """对话框需要一个 QApplication 实例"""
    app = QtWidgets.QApplication.instance()
    if app is None:
        app = QtWidgets.QApplication(sys.argv)
    return app


class QtPicker:
    """基于 QFileDialog 的阻塞式选择器，取消时返回 None"""

    def __init__(self, start_dir=None, on_pick=None):
        self.start_dir = start_dir or str(Path.home())
        self.on_pick = on_pick

    def pick_folder(self, title=FOLDER_TITLE):
        _ensure_app()
        selected = QtWidgets.QFileDialog.getExistingDirectory(None, title, self.start_dir)
        if not selected:
            return None
        self._remember(selected)
        return selected

    def pick_file(self, title=FILE_TITLE):
        _ensure_app()
        selected, _ = QtWidgets.QFileDialog.getOpenFileName(None, title, self.start_dir)
        if not selected:
            return None
        self._remember(str(Path(selected).parent))
        return selected

    def _remember(self, folder):
        # 下次从上次选择的位置打开
        self.start_dir = folder
        if self.on_pick is not None:
            self.on_pick(folder)
