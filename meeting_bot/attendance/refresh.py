"""Rewrite attendance lines inside an already-posted message."""

import re
from typing import Any, Dict, List, Mapping

from ..bot.blocks.event_blocks import attendance_text
from ..storage.attendance import Attendance

_MARKERS = ("✅", "❌", ":white_check_mark:", ":x:", "Attending:")
_FIRST_MARKER_LINE = re.compile(r"\n✅|\n❌|\n:white_check_mark:|\n:x:")


def has_attendance_markers(text: str) -> bool:
    return any(marker in text for marker in _MARKERS)


def rebuild_section_text(text: str, attendance: Attendance) -> str:
    """Keep the event details above the first attendance line, then
    append fresh inline attendance."""
    base = _FIRST_MARKER_LINE.split(text, maxsplit=1)[0]
    return base + attendance_text(attendance.attending, attendance.not_attending)


def refresh_blocks(
    blocks: List[Dict[str, Any]], attendance_by_key: Mapping[str, Attendance]
) -> List[Dict[str, Any]]:
    """Return ``blocks`` with updated attendance for the given keys.

    A section belongs to a key when it sits directly before the actions
    block whose buttons carry that key as their value.
    """
    section_keys: Dict[int, str] = {}
    for index, block in enumerate(blocks):
        if block.get("type") != "actions" or index == 0:
            continue
        for key in attendance_by_key:
            if any(el.get("value") == key for el in block.get("elements") or []):
                section_keys[index - 1] = key
                break

    updated: List[Dict[str, Any]] = []
    for index, block in enumerate(blocks):
        key = section_keys.get(index)
        text = (block.get("text") or {}).get("text") if block else None
        if (
            key is None
            or block.get("type") != "section"
            or not text
            or not has_attendance_markers(text)
        ):
            updated.append(block)
            continue
        new_text = rebuild_section_text(text, attendance_by_key[key])
        updated.append({**block, "text": {**block["text"], "text": new_text}})
    return updated
