"""Shared type aliases, enums and result containers."""
