from __future__ import annotations

import itertools
import random
from typing import List, Optional

from .constants import (
    COLOR_TO_DIRECTION,
    COLORS,
    HARD_DISTRACTION_CHANCE,
    HEX_COLORS,
    INSANE_SEQUENCE_LEN,
    NEUTRAL_ACCENT,
    SINGLE_SWIPE_ID,
)
from .enums import ColorKey, GameMode
from .models import Challenge, GeneratedChallenge, RequiredSwipe, SequenceItem

_ids = itertools.count(1)


def _pick(rng, pool) -> ColorKey:
    return rng.choice(list(pool))


def _insane(rng) -> GeneratedChallenge:
    serial = next(_ids)
    seq: List[SequenceItem] = []
    for i in range(INSANE_SEQUENCE_LEN):
        c = _pick(rng, COLORS)     # duplicates allowed, ids tell them apart
        seq.append(SequenceItem(c, COLOR_TO_DIRECTION[c], f"insane-{serial}-{i}"))

    head = seq[0]
    challenge = Challenge(
        block_color=head.color,
        text_color=head.color,
        required_direction=head.direction,
        sequence=seq,
    )
    swipes = [RequiredSwipe(item.direction, item.id) for item in seq]
    return GeneratedChallenge(challenge, swipes, HEX_COLORS[_pick(rng, COLORS)])


def _single(mode: GameMode, rng) -> GeneratedChallenge:
    block = _pick(rng, COLORS)
    text = block
    label: Optional[ColorKey] = None
    accent = NEUTRAL_ACCENT

    if mode is GameMode.HARD:
        if rng.random() < HARD_DISTRACTION_CHANCE:
            text = _pick(rng, [c for c in COLORS if c is not block])
            # second layer: the word's ink never matches the word itself
            label = _pick(rng, [c for c in COLORS if c is not text])
        accent = HEX_COLORS[_pick(rng, COLORS)]

    challenge = Challenge(
        block_color=block,
        text_color=text,
        required_direction=COLOR_TO_DIRECTION[block],
        label_color=label,
    )
    return GeneratedChallenge(challenge, [RequiredSwipe(challenge.required_direction, SINGLE_SWIPE_ID)], accent)


def generate_challenge(mode: GameMode, rng: random.Random | None = None) -> GeneratedChallenge:
    rng = rng or random
    if mode is GameMode.INSANE:
        return _insane(rng)
    return _single(mode, rng)


__all__ = ["generate_challenge"]
