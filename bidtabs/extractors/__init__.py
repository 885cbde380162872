"""__init__.py for extractors package."""
from .base_extractor import BaseExtractor
from .bid_file_parser import BidFileParser, parse_bid_file

__all__ = [
    "BaseExtractor",
    "BidFileParser",
    "parse_bid_file",
]
