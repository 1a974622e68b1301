"""Operational scripts for local development and deployment."""
