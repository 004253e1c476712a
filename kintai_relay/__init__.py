"""Slack to freee HR attendance relay."""
