"""Source provider: parse JavaScript into ESTree nodes and splice text edits."""

from prodready.source.edits import TextEdit, apply_edits, unified_diff
from prodready.source.parser import ParsedSource, parse

__all__ = ["ParsedSource", "TextEdit", "apply_edits", "parse", "unified_diff"]
