"""Input and output for fibred surfaces.

Key classes:
- PathParser: Parses edge path words and definitions

Surface files are read by ``fibred.io.reader`` and written by
``fibred.io.writer``.
"""

from fibred.io.parser import PathParser, parse_map_text, parse_path

__all__ = [
    "PathParser",
    "parse_map_text",
    "parse_path",
]
