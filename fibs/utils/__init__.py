"""Shared helpers: filesystem, subprocess and input validation."""
