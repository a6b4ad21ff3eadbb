# relaychat/protocol.py

"""
Line protocol shared by the relay server and client.

Every message is one line of UTF-8 text terminated by a newline.
"""

import socket

ENCODING = 'utf-8'
DEFAULT_PORT = 20000

# Sent by a client (and typed at the server console) to leave / stop
QUIT_COMMAND = '\\q'

SYSTEM_PREFIX = '[SYSTEM]: '
SELF_LABEL = 'You'
SHUTDOWN_NOTICE = "Server is shutting down, disconnecting... press '\\q' to exit"


def format_chat(sender: str, body: str, recipient: str) -> str:
    """ Formats a chat line for one recipient."""
    if recipient == sender:
        return f"{SELF_LABEL}: {body}"
    return f"{sender}: {body}"


def format_system(text: str) -> str:
    return SYSTEM_PREFIX + text


def join_notice(username: str) -> str:
    return f"{username} has joined the chat."


def leave_notice(username: str) -> str:
    return f"{username} has left the chat."


def taken_notice(username: str) -> str:
    return f"Username '{username}' is already taken."


def strip_line(raw: str) -> str:
    """ Drops the line terminator, keeping any other whitespace."""
    if raw.endswith('\n'):
        raw = raw[:-1]
    if raw.endswith('\r'):
        raw = raw[:-1]
    return raw


def open_streams(sock: socket.socket):
    """ Wraps a connected socket in newline-delimited text streams."""
    reader = sock.makefile('r', encoding=ENCODING, errors='replace', newline='\n')
    writer = sock.makefile('w', encoding=ENCODING, newline='\n')
    return reader, writer
