"""Shared CLI rendering helpers."""
from __future__ import annotations

import os
import textwrap
from typing import Iterable, Sequence

from questscript.services.host import DialoguePayload, ImagePayload, QuestWarning

_TEXT_WIDTH = 72


def debug_enabled() -> bool:
    """Return True only when QUESTSCRIPT_DEBUG is explicitly set to '1'."""
    return os.getenv("QUESTSCRIPT_DEBUG") == "1"


def wrap_text(text: str, width: int = _TEXT_WIDTH, *, indent_continuation: bool = True) -> list[str]:
    """Wrap text on word boundaries, indenting continuation lines by two spaces."""
    if not text or width <= 0:
        return [text] if text else [""]
    subsequent_indent = "  " if indent_continuation else ""
    wrapped = textwrap.fill(
        text,
        width=width,
        initial_indent="",
        subsequent_indent=subsequent_indent,
        break_long_words=False,
        break_on_hyphens=False,
    )
    return wrapped.split("\n")


def render_heading(title: str) -> None:
    """Print a consistent section heading."""
    print(f"\n=== {title} ===")


def render_dialogue(payload: DialoguePayload) -> None:
    speaker = payload.speaker
    if payload.emoji:
        speaker = f"{payload.emoji} {speaker}"
    if debug_enabled():
        print(f"[{payload.node_id}]")
    lines = wrap_text(payload.text)
    print(f"{speaker}: {lines[0]}")
    for line in lines[1:]:
        print(f"  {line}")


def render_choices(question: str, choices: Sequence[str]) -> None:
    """Display the question and numbered choices."""
    render_heading(question)
    for idx, label in enumerate(choices, start=1):
        print(f"{idx}. {label}")


def render_image(payload: ImagePayload) -> None:
    print(f"[image: {payload.path} ({payload.duration:g}s)]")


def render_warnings(warnings: Iterable[QuestWarning]) -> None:
    """Print bullet-prefixed warning lines."""
    for warning in warnings:
        print(f"- {warning.code}: {warning.message}")
