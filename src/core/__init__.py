"""Shared infrastructure: settings-driven logging, store and cache clients, errors."""
