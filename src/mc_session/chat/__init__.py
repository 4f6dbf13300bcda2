"""Chat text decoding and server-line recognition."""

from .decoder import decode, json_to_coded_text, strip_codes
from .patterns import PatternMatch, PatternRegistry, PatternRule, RuleName, TextFlavor, build_registry, is_legit_payment

__all__ = [
    "PatternMatch",
    "PatternRegistry",
    "PatternRule",
    "RuleName",
    "TextFlavor",
    "build_registry",
    "decode",
    "is_legit_payment",
    "json_to_coded_text",
    "strip_codes",
]
