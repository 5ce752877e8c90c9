"""Pipeline stages: match, resolve, sort, assemble."""

from .assembler import Assembler
from .content_resolver import ContentResolver, ensure_trailing_newline
from .matcher import FragmentMatcher, match_fragments
from .ordering import build_order_key, decompose_key, sort_fragments, Sorter
from .registries import EvaluationRun

__all__ = [  # noqa: RUF022
    "FragmentMatcher",
    "ContentResolver",
    "Sorter",
    "Assembler",
    "EvaluationRun",
    "match_fragments",
    "ensure_trailing_newline",
    "build_order_key",
    "decompose_key",
    "sort_fragments",
]
