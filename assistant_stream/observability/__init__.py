"""Logging helpers for the stream pipeline."""

from .logging import StreamLogger

__all__ = ["StreamLogger"]
