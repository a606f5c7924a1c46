"""热键触发的局域网单文件传输工具

运行方式（示例）:
  接收方（机器 A）: python drop.py server --hotkey ctrl+shift+r
  发送方（机器 B）: python drop.py client --server 192.168.1.100 --hotkey ctrl+shift+s

不带参数运行时进入交互模式选择角色。

接收方按下热键选择保存目录，之后依次接收排队的连接；发送方按下热键选择
文件后立即发送。每个连接只传输一个文件：

  [u32 文件名长度][u32 文件长度][文件名 UTF-8][文件内容]

接收方保存成功后回复 "OK"。未实现认证和加密，适合受信任的局域网环境。
"""

import sys
import logging
import argparse

from hotdrop import HotkeyParseError, RegistrationError, parse_hotkey, run_client, run_server
from hotdrop.helpers import FILE_TRANSFER_PORT, get_config_manager, use_config_file
from utils import get_local_ip

DEFAULT_SERVER_HOTKEY = 'ctrl+shift+r'
DEFAULT_CLIENT_HOTKEY = 'ctrl+shift+s'


def _make_picker(section):
    """创建文件选择器，并记住上次选择的目录"""
    from ui import QtPicker

    config_manager = get_config_manager()
    section_config = config_manager.config.setdefault(section, {})

    def remember(folder):
        section_config['last_folder'] = folder
        config_manager.save_config()

    return QtPicker(section_config.get('last_folder') or None, on_pick=remember)


def cmd_server(args):
    server_config = get_config_manager().get_server_config()
    hotkey = args.hotkey or server_config.get('hotkey', DEFAULT_SERVER_HOTKEY)
    port = server_config.get('port', FILE_TRANSFER_PORT)
    bind = args.bind or server_config.get('bind', '0.0.0.0')
    try:
        parse_hotkey(hotkey)
        logging.info('Local IP address: %s', get_local_ip())
        run_server(hotkey, _make_picker('server'), port=port, bind=bind)
    except HotkeyParseError as e:
        logging.error('Invalid hotkey: %s', e)
        return 1
    except RegistrationError as e:
        logging.error('Failed to register hotkey: %s', e)
        return 1
    except OSError as e:
        logging.error('Failed to listen on %s:%d: %s', bind, port, e)
        return 1
    except KeyboardInterrupt:
        logging.info('Receiver stopped')
    return 0


def cmd_client(args):
    client_config = get_config_manager().get_client_config()
    hotkey = args.hotkey or client_config.get('hotkey', DEFAULT_CLIENT_HOTKEY)
    server = args.server or client_config.get('host', 'localhost')
    port = client_config.get('port', FILE_TRANSFER_PORT)
    try:
        parse_hotkey(hotkey)
        run_client(server, hotkey, _make_picker('client'), port=port)
    except HotkeyParseError as e:
        logging.error('Invalid hotkey: %s', e)
        return 1
    except RegistrationError as e:
        logging.error('Failed to register hotkey: %s', e)
        return 1
    except KeyboardInterrupt:
        logging.info('Sender stopped')
    return 0


def interactive_mode(input_func=input):
    """交互式选择角色"""
    print('HotDrop file transfer')
    print('=====================')
    print('1. Server mode (receive files)')
    print('2. Client mode (send files)')
    choice = input_func('Choose (1/2): ').strip()

    if choice == '1':
        print(f'Server mode selected, hotkey: {DEFAULT_SERVER_HOTKEY}')
        return cmd_server(argparse.Namespace(hotkey=DEFAULT_SERVER_HOTKEY, bind=None))
    if choice == '2':
        server = input_func('Server IP address: ').strip()
        if not server:
            print('No IP address entered, using localhost')
            server = 'localhost'
        print(f'Client mode selected, hotkey: {DEFAULT_CLIENT_HOTKEY}')
        return cmd_client(argparse.Namespace(hotkey=DEFAULT_CLIENT_HOTKEY, server=server))

    print('Invalid choice, exiting')
    return 1


def build_parser():
    parser = argparse.ArgumentParser(prog='hotdrop', description='Send one file to a LAN peer with a global hotkey')
    parser.add_argument('--config', metavar='PATH', help='config file (default: hotdrop_config.json)')
    parser.add_argument('-v', '--verbose', action='store_true', help='enable debug logging')
    sub = parser.add_subparsers(dest='command', required=True)

    server = sub.add_parser('server', help='receive files')
    server.add_argument('-k', '--hotkey', help=f'hotkey to choose the save folder (default: {DEFAULT_SERVER_HOTKEY})')
    server.add_argument('--bind', help='bind address (default: 0.0.0.0)')
    server.set_defaults(func=cmd_server)

    client = sub.add_parser('client', help='send files')
    client.add_argument('-s', '--server', metavar='HOST', help='receiver IP address (default: localhost)')
    client.add_argument('-k', '--hotkey', help=f'hotkey to choose a file (default: {DEFAULT_CLIENT_HOTKEY})')
    client.set_defaults(func=cmd_client)
    return parser


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv

    # 配置日志
    if not logging.getLogger().handlers:
        level = logging.DEBUG if '-v' in argv or '--verbose' in argv else logging.INFO
        logging.basicConfig(level=level, format='[%(asctime)s] %(message)s')

    if not argv:
        return interactive_mode()

    args = build_parser().parse_args(argv)
    if args.config:
        use_config_file(args.config)
    return args.func(args)


if __name__ == '__main__':
    sys.exit(main())
