"""Output serializers."""

from .key_writer import KeyWriter

__all__ = ['KeyWriter']
