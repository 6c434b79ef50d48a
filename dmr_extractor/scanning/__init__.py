"""Streaming excerpt scanner."""

from .excerpt_scanner import END_OF_STREAM, ExcerptScanner

__all__ = ['END_OF_STREAM', 'ExcerptScanner']
