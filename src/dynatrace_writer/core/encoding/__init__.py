"""Payload encoders."""

from dynatrace_writer.core.encoding.line_protocol import (
    encode_line,
    encode_lines,
    normalize_key,
)

__all__ = ["encode_line", "encode_lines", "normalize_key"]
