"""Bandwidth usage monitor for Hetzner Cloud servers."""

__version__ = "0.1.0"
