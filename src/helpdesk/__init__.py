"""Helpdesk ticketing backend: ticket lifecycle, webhooks, AI chat and notifications."""

__version__ = "0.4.0"
