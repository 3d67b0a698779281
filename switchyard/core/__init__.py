"""
Core logic package.

Provides event normalization, reply serialization, logging and request context.
"""

from .normalizer import EventNormalizer, create_normalizer
from .serializer import ReplySerializer, create_serializer
from .utils import normalize_header, parse_body

__all__ = [
    "EventNormalizer",
    "ReplySerializer",
    "create_normalizer",
    "create_serializer",
    "normalize_header",
    "parse_body",
]
