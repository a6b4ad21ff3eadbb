#!/usr/bin/env python3
"""
Unit tests for broadcast fan-out.

Recipients are mocks, so delivery failures can be injected per recipient.
"""

import threading
import unittest
from unittest.mock import Mock, call

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from relaychat import protocol
from relaychat.broadcaster import Broadcaster
from relaychat.registry import Registry


def fake_session(username, fail=False, alive=True):
    session = Mock()
    session.username = username
    session.server_shutdown = False
    if fail:
        session.send.side_effect = ConnectionError(f"Failed to send to {username}")
    else:
        session.send.return_value = alive
    return session


class TestBroadcaster(unittest.TestCase):

    def setUp(self):
        self.registry = Registry()
        self.stopping = threading.Event()
        self.broadcaster = Broadcaster(self.registry, self.stopping)

    def register(self, *sessions):
        for s in sessions:
            self.registry.add(s)

    def test_sender_sees_you_prefix_and_others_see_sender(self):
        alice, bob, carol = fake_session("alice"), fake_session("bob"), fake_session("carol")
        self.register(alice, bob, carol)

        delivered = self.broadcaster.broadcast("alice", "hello")

        self.assertEqual(delivered, 3)
        alice.send.assert_called_once_with("You: hello")
        bob.send.assert_called_once_with("alice: hello")
        carol.send.assert_called_once_with("alice: hello")

    def test_failed_recipient_is_closed_and_others_still_served(self):
        alice, broken, carol = fake_session("alice"), fake_session("bob", fail=True), fake_session("carol")
        self.register(alice, broken, carol)

        delivered = self.broadcaster.broadcast("alice", "hi")

        self.assertEqual(delivered, 2)
        broken.close.assert_called_once_with()
        alice.close.assert_not_called()
        self.assertEqual(self.registry.usernames(), ["alice", "carol"])
        # The failed recipient is announced once, then fan-out carries on
        left = "[SYSTEM]: bob has left the chat."
        self.assertEqual(alice.send.call_args_list, [call("You: hi"), call(left)])
        self.assertEqual(carol.send.call_args_list, [call(left), call("alice: hi")])

    def test_drop_announces_departure_only_once(self):
        alice, bob = fake_session("alice"), fake_session("bob")
        self.register(alice, bob)

        self.assertTrue(self.broadcaster.drop(bob))
        self.assertFalse(self.broadcaster.drop(bob))

        alice.send.assert_called_once_with("[SYSTEM]: bob has left the chat.")
        self.assertEqual(bob.close.call_count, 2)
        self.assertNotIn("bob", self.registry)

    def test_drop_is_silent_during_shutdown(self):
        alice, bob = fake_session("alice"), fake_session("bob")
        self.register(alice, bob)
        self.stopping.set()

        self.assertTrue(self.broadcaster.drop(bob))
        alice.send.assert_not_called()

    def test_closed_recipient_is_skipped(self):
        gone = fake_session("bob", alive=False)
        self.register(gone)
        self.assertEqual(self.broadcaster.broadcast("alice", "hi"), 0)
        gone.close.assert_not_called()

    def test_system_notice_excludes_the_cause(self):
        alice, bob = fake_session("alice"), fake_session("bob")
        self.register(alice, bob)

        self.broadcaster.broadcast_system(protocol.join_notice("bob"), exclude=bob)

        alice.send.assert_called_once_with("[SYSTEM]: bob has joined the chat.")
        bob.send.assert_not_called()

    def test_system_notice_suppressed_during_shutdown(self):
        alice = fake_session("alice")
        self.register(alice)
        self.stopping.set()

        self.assertEqual(self.broadcaster.broadcast_system("anything"), 0)
        alice.send.assert_not_called()

    def test_notify_shutdown_marks_every_session(self):
        alice, broken = fake_session("alice"), fake_session("bob", fail=True)
        self.register(alice, broken)
        self.stopping.set()

        delivered = self.broadcaster.notify_shutdown()

        self.assertEqual(delivered, 1)
        self.assertEqual(self.registry.usernames(), ["alice"])
        for s in (alice, broken):
            s.mark_server_shutdown.assert_called_once_with()
        alice.send.assert_called_once_with(protocol.format_system(protocol.SHUTDOWN_NOTICE))

    def test_disconnect_all_closes_each_session(self):
        alice, bob = fake_session("alice"), fake_session("bob")
        self.register(alice, bob)
        self.broadcaster.disconnect_all()
        alice.close.assert_called_once_with()
        bob.close.assert_called_once_with()
        self.assertEqual(len(self.registry), 0)


if __name__ == '__main__':
    unittest.main()
