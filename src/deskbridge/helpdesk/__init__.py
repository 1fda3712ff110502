"""Helpdesk platform integration."""

from deskbridge.helpdesk.client import ChatwootClient, ReplyRequest

__all__ = ["ChatwootClient", "ReplyRequest"]
