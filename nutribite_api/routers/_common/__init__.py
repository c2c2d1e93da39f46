"""Shared router dependencies."""
