"""Sequence alignment, sequence reading and run-length symbol storage tools."""

__version__ = "0.1.0"

__all__ = [
    "kbtree",
    "kseq",
    "ksort",
    "ksw_align",
    "ksw_extend",
    "kthread",
    "rle",
    "rope",
    "utils",
]