"""
Module: builder.mixing.mixer

Purpose:
    Variant mixer. Produces N shuffled exam variants from a validated
    question list. Each variant is a pure function of the questions and
    its variant index:

    - variant seed = index * 1000
    - question order: Random(variant seed).shuffle
    - options of the question at position j: Random(variant seed + j).shuffle

    Options are relabeled A, B, C... by shuffled position and the stored
    correct label is mapped through the old -> new label table.

Key Functions:
    - mix_exams(): N variants with codes
    - mix_variant(): One variant for one index
    - shuffle_options(): Seeded option permutation

Key Classes:
    - MixError: Precondition failure (raised before any randomness)

Dependencies:
    - random (std): Mersenne Twister; shuffle is Fisher-Yates
    - concurrent.futures (std): Optional parallel variants

Used By:
    - builder.controller
"""

from __future__ import annotations

import logging
import random
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

from siromix.core.models.mixed import MixedExam, MixedOption, MixedQuestion
from siromix.core.models.questions import OPTION_LABELS, OptionItem, Question
from .codes import MAX_DISTINCT_CODES, check_exam_codes, generate_exam_codes

logger = logging.getLogger(__name__)

SEED_MULTIPLIER = 1000


class MixError(Exception):
    """Mixing preconditions not met."""
    pass


def variant_seed(variant_index: int, multiplier: int = SEED_MULTIPLIER) -> int:
    return variant_index * multiplier


def shuffle_options(options: Sequence[OptionItem], rng: random.Random) -> List[OptionItem]:
    """Return a shuffled copy of the options."""
    shuffled = list(options)
    rng.shuffle(shuffled)
    return shuffled


def _mix_question(question: Question, position: int, seed: int) -> MixedQuestion:
    shuffled = shuffle_options(question.options, random.Random(seed + position))

    mapping = {}
    options = []
    for new_label, option in zip(OPTION_LABELS, shuffled):
        mapping[option.label] = new_label
        options.append(
            MixedOption(label=new_label, original_label=option.label, content=option.content)
        )

    return MixedQuestion(
        original_number=question.number,
        display_number=position + 1,
        stem=question.stem,
        options=tuple(options),
        correct_answer=mapping.get(question.correct_label, question.correct_label),
    )


def mix_variant(
    questions: Sequence[Question],
    variant_index: int,
    exam_code: str,
    *,
    seed_multiplier: int = SEED_MULTIPLIER,
) -> MixedExam:
    """
    Build one variant.

    Question order is shuffled first; each option shuffle is then seeded
    from the question's shuffled position, so the two steps must keep
    this order.
    """
    seed = variant_seed(variant_index, seed_multiplier)
    order = list(questions)
    random.Random(seed).shuffle(order)

    mixed = tuple(_mix_question(question, j, seed) for j, question in enumerate(order))
    return MixedExam(exam_code=exam_code, questions=mixed)


def mix_exams(
    questions: Sequence[Question],
    variant_count: int,
    exam_codes: Optional[Sequence[str]] = None,
    *,
    seed_multiplier: int = SEED_MULTIPLIER,
    code_rng: Optional[random.Random] = None,
    max_workers: int = 1,
) -> List[MixedExam]:
    """
    Produce `variant_count` shuffled variants.

    Args:
        questions: Validated questions (source order)
        variant_count: Number of variants, > 0
        exam_codes: Explicit codes, one per variant; generated if None
        seed_multiplier: Variant seed = index * seed_multiplier
        code_rng: Random source for generated codes
        max_workers: Variants built concurrently when > 1

    Returns:
        Variants in index order

    Raises:
        MixError: variant_count <= 0, no questions, more variants than
            distinct codes, or unusable explicit codes
    """
    if variant_count <= 0:
        raise MixError(f"variant_count must be positive: {variant_count}")
    if not questions:
        raise MixError("Cannot mix an empty question list")
    if variant_count > MAX_DISTINCT_CODES:
        raise MixError(f"At most {MAX_DISTINCT_CODES} variants have distinct codes: {variant_count}")
    if exam_codes is not None:
        problems = check_exam_codes(exam_codes, variant_count)
        if problems:
            raise MixError("; ".join(problems))

    codes = list(exam_codes) if exam_codes is not None else generate_exam_codes(variant_count, code_rng)

    def build(index: int) -> MixedExam:
        return mix_variant(questions, index, codes[index], seed_multiplier=seed_multiplier)

    if max_workers > 1 and variant_count > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            variants = list(executor.map(build, range(variant_count)))
    else:
        variants = [build(index) for index in range(variant_count)]

    logger.info(
        f"Mixed {variant_count} variants of {len(questions)} questions: {', '.join(codes)}"
    )
    return variants
