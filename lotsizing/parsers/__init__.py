"""Instance file parsers."""

from .trigeiro_parser import TrigeiroParser, parse_trigeiro_text

__all__ = ['TrigeiroParser', 'parse_trigeiro_text']
