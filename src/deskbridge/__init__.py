"""Deskbridge — relays Chatwoot customer messages to a language model and back."""

__version__ = "1.0.0"
