"""Shared helpers for the office check-in tool."""
