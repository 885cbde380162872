"""Transformers package for snapshot export."""

from .export_formatter import build_snapshot, dump_snapshot, parse_snapshot, write_snapshot

__all__ = ["build_snapshot", "dump_snapshot", "parse_snapshot", "write_snapshot"]
