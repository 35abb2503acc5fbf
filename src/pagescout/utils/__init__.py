"""Filesystem, logging and prompt helpers."""
