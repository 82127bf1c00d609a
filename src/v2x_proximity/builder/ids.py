"""Identifier helpers for synthesized segments and spawned pedestrians."""
from __future__ import annotations

from sqids import Sqids

from ..utils.constants import PEDESTRIAN_ID_PREFIX, REVERSE_SEGMENT_SUFFIX

_SQIDS = Sqids(min_length=6)


def reverse_segment_id(segment_id: str) -> str:
    return f"{segment_id}{REVERSE_SEGMENT_SUFFIX}"


def is_reverse_segment_id(segment_id: str) -> bool:
    return segment_id.endswith(REVERSE_SEGMENT_SUFFIX)


def pedestrian_id(epoch_ms: int, ordinal: int) -> str:
    """Return a compact ``ped_<sqid>`` token unique per spawn time and ordinal."""

    token = _SQIDS.encode([max(0, int(epoch_ms)), max(0, int(ordinal))])
    return f"{PEDESTRIAN_ID_PREFIX}_{token}"


__all__ = ["is_reverse_segment_id", "pedestrian_id", "reverse_segment_id"]
