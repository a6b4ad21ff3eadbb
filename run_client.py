# run_client.py

"""
Starts the relay chat client.
"""

import argparse
import sys
from relaychat import config
from relaychat.client import ChatClient

def main():
    parser = argparse.ArgumentParser(description="Relay Chat Client")
    parser.add_argument(
        'host',
        nargs='?',
        default=None,
        help="Server host address/IP (default: server_address from the config file, else localhost)"
    )
    parser.add_argument(
        '-p', '--port',
        type=int,
        default=None,
        help="Server port number (default: server_port from the config file, else 20000)"
    )
    parser.add_argument(
        '-u', '--username',
        default=None,
        help="Your username for the chat (prompted for when omitted)."
    )
    parser.add_argument(
        '-c', '--config',
        default=config.DEFAULT_CONFIG_FILE,
        help=f"Properties file to read (default: {config.DEFAULT_CONFIG_FILE})"
    )
    args = parser.parse_args()

    properties = config.load_properties(args.config)
    client = ChatClient(
        host=config.resolve_host(args.host, properties, 'localhost'),
        port=config.resolve_port(args.port, properties),
        username=args.username,
    )
    sys.exit(client.run())

if __name__ == "__main__":
    main()
