"""Core configuration, logging and security helpers."""
