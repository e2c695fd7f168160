"""scoopi.parser: HTML extraction helpers."""

from scoopi.parser.html_parser import extract_page

__all__ = ["extract_page"]
