"""Test suite for the chatroom server."""
