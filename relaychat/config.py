# relaychat/config.py

"""
Optional `key=value` properties file for the server and client scripts.
"""

import configparser
import logging
from . import protocol

DEFAULT_CONFIG_FILE = 'config.properties'
_SECTION = 'relaychat'


def load_properties(path: str = DEFAULT_CONFIG_FILE) -> dict:
    """ Reads a properties file. A missing file yields an empty dict."""
    parser = configparser.ConfigParser(interpolation=None)
    try:
        with open(path, encoding='utf-8') as f:
            # Properties files have no section headers
            parser.read_string(f"[{_SECTION}]\n" + f.read())
    except FileNotFoundError:
        logging.info(f"Configuration file '{path}' not found. Using defaults.")
        return {}
    except (OSError, configparser.Error) as e:
        logging.warning(f"Error reading configuration file '{path}': {e}. Using defaults.")
        return {}
    return dict(parser[_SECTION])


def resolve_port(cli_port, properties: dict) -> int:
    """ Command line first, then the properties file, then the default."""
    if cli_port is not None:
        return cli_port
    value = properties.get('server_port')
    if value is None:
        return protocol.DEFAULT_PORT
    try:
        return int(value)
    except ValueError:
        logging.warning(f"Invalid port number '{value}' in configuration. Using default port.")
        return protocol.DEFAULT_PORT


def resolve_host(cli_host, properties: dict, default: str) -> str:
    if cli_host:
        return cli_host
    return properties.get('server_address') or default
