# relaychat/client.py

"""
The console chat client.
"""

import socket
import threading
import logging
import time
from . import protocol

# Configure logging for client-side messages
logging.basicConfig(level=logging.INFO, format='%(message)s') # Simpler format for client

DEFAULT_ATTEMPTS = 3


class ChatClient:
    def __init__(self, host, port=protocol.DEFAULT_PORT, username=None,
                 attempts=DEFAULT_ATTEMPTS, retry_delay=1.0):
        self.host = host
        self.port = port
        self.username = username
        self.attempts = attempts
        self.retry_delay = retry_delay
        self.client_socket = None
        self.reader = None
        self.writer = None
        self.receive_thread = None
        self.running = False

    def connect(self) -> bool:
        """ Opens the connection, retrying a bounded number of times."""
        for attempt in range(1, self.attempts + 1):
            logging.info(f"Connecting to the chat server at {self.host}:{self.port}...")
            try:
                self.client_socket = socket.create_connection((self.host, self.port))
            except OSError as e:
                logging.error(f"Cannot connect to the server: {e}")
                if attempt == self.attempts:
                    logging.error("Failed to connect after multiple attempts. Exiting.")
                    return False
                logging.info("Retrying connection...")
                time.sleep(self.retry_delay)
                continue

            self.reader, self.writer = protocol.open_streams(self.client_socket)
            self.running = True
            return True
        return False

    def _receive_messages(self):
        """ Target function for the thread that prints server lines."""
        try:
            for raw in self.reader:
                print(protocol.strip_line(raw))
        except (OSError, ValueError) as e:
            if self.running:
                logging.error(f"Error receiving message: {e}")
        if self.running:
            # Server went away while we were still chatting
            print("Disconnected from server.")
            self.running = False

    def send_text(self, message: str) -> bool:
        try:
            self.writer.write(message + '\n')
            self.writer.flush()
            return True
        except (OSError, ValueError):
            logging.error("Cannot send message. Connection lost.")
            self.running = False
            return False

    def join(self):
        """ Sends the username line and starts the receiving thread."""
        while not self.username or not self.username.strip():
            self.username = input("Enter your username: ")
        self.send_text(self.username)
        self.receive_thread = threading.Thread(target=self._receive_messages, daemon=True)
        self.receive_thread.start()
        logging.info(f"Welcome to the Chat, {self.username}!")
        logging.info(f"Type a message and hit Enter to send. Type '{protocol.QUIT_COMMAND}' to quit.")

    def start_input_loop(self):
        """ Sends console lines until the quit command or end of input."""
        try:
            while self.running:
                message = input()
                if message == protocol.QUIT_COMMAND:
                    logging.info("You have left the chat.")
                    break
                if not self.send_text(message):
                    break
        except (EOFError, KeyboardInterrupt):
            logging.info("Input closed. Disconnecting...")
        finally:
            self.close()

    def close(self):
        self.running = False
        if self.client_socket:
            try:
                self.client_socket.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass # Socket might already be closed
        if self.receive_thread and self.receive_thread.is_alive():
            self.receive_thread.join(timeout=1.0)
        for stream in (self.writer, self.reader):
            if stream is None:
                continue
            try:
                stream.close()
            except (OSError, ValueError):
                pass
        if self.client_socket:
            self.client_socket.close()

    def run(self) -> int:
        """ Connects, chats, and returns the process exit status."""
        if not self.connect():
            return 1
        self.join()
        self.start_input_loop()
        return 0
