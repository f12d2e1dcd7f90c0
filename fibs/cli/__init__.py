"""Command line support: command context and rich display helpers."""
