"""Command line interface for notedown."""
