"""
Module: builder.mixing.codes

Purpose:
    Exam code generation and checking. An exam code is three ASCII
    digits in 100-999 identifying one variant.

Key Functions:
    - generate_exam_codes(): N pairwise-distinct random codes
    - check_exam_codes(): Problems with explicitly supplied codes

Dependencies:
    - random (std)

Used By:
    - builder.mixing.mixer
"""

from __future__ import annotations

import random
from typing import List, Optional, Sequence

from siromix.core.models.mixed import is_exam_code

CODE_MIN = 100
CODE_MAX = 999
MAX_DISTINCT_CODES = CODE_MAX - CODE_MIN + 1


def generate_exam_codes(count: int, rng: Optional[random.Random] = None) -> List[str]:
    """
    Generate `count` distinct 3-digit codes by repeated sampling.

    Codes keep the order in which they were first drawn.

    Args:
        count: Number of codes, 1..900
        rng: Random source (a fresh unseeded Random by default)

    Raises:
        ValueError: If count is outside 1..900
    """
    if not 1 <= count <= MAX_DISTINCT_CODES:
        raise ValueError(f"count must be between 1 and {MAX_DISTINCT_CODES}: {count}")

    rng = rng or random.Random()
    seen: set[str] = set()
    codes: List[str] = []
    while len(codes) < count:
        code = str(rng.randint(CODE_MIN, CODE_MAX))
        if code not in seen:
            seen.add(code)
            codes.append(code)
    return codes


def check_exam_codes(codes: Sequence[str], count: int) -> List[str]:
    """
    Describe every problem with explicitly supplied codes.

    Returns:
        Problem messages; empty when the codes are usable
    """
    problems = []
    if len(codes) != count:
        problems.append(f"expected {count} exam codes, got {len(codes)}")
    bad = [code for code in codes if not is_exam_code(code)]
    if bad:
        problems.append(f"exam codes must be 3 digits: {bad}")
    duplicates = sorted({code for code in codes if list(codes).count(code) > 1})
    if duplicates:
        problems.append(f"duplicate exam codes: {duplicates}")
    return problems
