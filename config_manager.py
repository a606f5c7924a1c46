import copy
import json
import logging
import os

DEFAULT_CONFIG_FILE = 'hotdrop_config.json'


class ConfigManager:
    """配置管理器类"""

    def __init__(self, config_file=DEFAULT_CONFIG_FILE):
        self.config_file = config_file
        self.default_config = {
            "server": {
                "hotkey": "ctrl+shift+r",
                "bind": "0.0.0.0",
                "port": 8080,
                "last_folder": ""
            },
            "client": {
                "hotkey": "ctrl+shift+s",
                "host": "localhost",
                "port": 8080,
                "last_folder": ""
            },
            "transfer": {
                "queue_size": 10,
                "poll_interval": 0.1,
                "response_size": 1024,
                "max_name_length": 4096,
                "max_payload_size": 512 * 1024 * 1024,  # 512MB
                "chunk_size": 262144,  # 256KB
                "socket_timeout": None,
                "reject_unsafe_names": True
            }
        }
        self.config = self._load_config()

    def _load_config(self):
        """加载配置文件"""
        if os.path.exists(self.config_file):
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    config = json.load(f)
                    # 合并默认配置，确保新字段存在
                    return self._merge_configs(self.default_config, config)
            except (OSError, ValueError) as e:
                logging.warning('Failed to load config %s: %s', self.config_file, e)
                return copy.deepcopy(self.default_config)
        else:
            return copy.deepcopy(self.default_config)

    def _merge_configs(self, default, current):
        """递归合并配置"""
        merged = copy.deepcopy(default)
        for key, value in current.items():
            if key in merged:
                if isinstance(merged[key], dict) and isinstance(value, dict):
                    merged[key] = self._merge_configs(merged[key], value)
                else:
                    merged[key] = value
        return merged

    def save_config(self):
        """保存配置文件"""
        try:
            with open(self.config_file, 'w', encoding='utf-8') as f:
                json.dump(self.config, f, indent=4, ensure_ascii=False)
            return True
        except OSError as e:
            logging.warning('Failed to save config %s: %s', self.config_file, e)
            return False

    # 接收方配置方法
    def get_server_config(self):
        return self.config.get('server', {})

    # 发送方配置方法
    def get_client_config(self):
        return self.config.get('client', {})

    # 传输配置方法
    def get_transfer_config(self):
        return self.config.get('transfer', {})
