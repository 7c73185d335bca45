"""
Source file parsers module.
"""

from parsers.source_parser import (
    parse_source,
    ParsedSource,
)

__all__ = [
    "parse_source",
    "ParsedSource",
]
