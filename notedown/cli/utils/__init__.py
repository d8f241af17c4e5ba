"""Helpers shared by notedown CLI commands."""
