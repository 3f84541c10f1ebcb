"""
Mixing Module

Seeded question/option shuffling and exam code generation.
"""

from .codes import generate_exam_codes
from .mixer import MixError, mix_exams, mix_variant, shuffle_options

__all__ = [
    "generate_exam_codes",
    "MixError",
    "mix_exams",
    "mix_variant",
    "shuffle_options",
]
