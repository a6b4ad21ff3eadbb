# run_server.py

"""
Starts the relay chat server.
"""

import argparse
import sys
import threading
from relaychat import config
from relaychat.server import ChatServer, DEFAULT_WORKERS

def main():
    parser = argparse.ArgumentParser(description="Relay Chat Server")
    parser.add_argument(
        '--host',
        default=None,
        help="Host address to bind the server to (default: 0.0.0.0)"
    )
    parser.add_argument(
        '-p', '--port',
        type=int,
        default=None,
        help="Port number to listen on (default: server_port from the config file, else 20000)"
    )
    parser.add_argument(
        '-w', '--workers',
        type=int,
        default=DEFAULT_WORKERS,
        help=f"Number of clients served concurrently (default: {DEFAULT_WORKERS})"
    )
    parser.add_argument(
        '-c', '--config',
        default=config.DEFAULT_CONFIG_FILE,
        help=f"Properties file to read (default: {config.DEFAULT_CONFIG_FILE})"
    )
    args = parser.parse_args()

    properties = config.load_properties(args.config)
    server = ChatServer(
        host=config.resolve_host(args.host, properties, '0.0.0.0'),
        port=config.resolve_port(args.port, properties),
        max_workers=args.workers,
    )

    console = threading.Thread(target=server.watch_console, args=(sys.stdin,), daemon=True)
    console.start()
    try:
        started = server.start()
    except KeyboardInterrupt:
        print("\nCtrl+C detected. Shutting down server...")
        server.shutdown()
        started = True
    if not started:
        sys.exit(1)
    print("Server shutdown complete.")

if __name__ == "__main__":
    main()
