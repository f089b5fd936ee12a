"""Pull image-generation prompts out of assistant replies.

The design assistant answers with lists of candidate prompts, either as
quoted numbered items (``1. "a frosted glass bottle ..."``) or as numbered
paragraphs that may wrap over several lines. Anything 20 characters or
shorter is treated as a heading or noise, not a prompt.
"""

from __future__ import annotations

import re

MIN_PROMPT_CHARS = 20

_QUOTES = "\"“”"
QUOTED_NUMBERED_RE = re.compile(rf"\d+\.\s*[{_QUOTES}]([^{_QUOTES}]+)[{_QUOTES}]")
NUMBERED_LINE_RE = re.compile(r"^(\d+)[.、。]\s*(.*)$")


def _is_prompt(text: str) -> bool:
    return len(text.strip()) > MIN_PROMPT_CHARS


def _clean_continuation(line: str) -> str:
    line = line.removeprefix("**").removesuffix("**")
    return line.removeprefix("||").strip()


def extract_quoted_prompts(content: str) -> list[str]:
    """Quoted texts following ``<n>.`` markers, in order of appearance."""
    return [match.group(1).strip() for match in QUOTED_NUMBERED_RE.finditer(content)]


def extract_numbered_paragraphs(content: str) -> list[str]:
    """Numbered paragraphs, joining wrapped lines with single spaces.

    A paragraph starts at a ``1.``/``1、``/``1。`` line and ends at the next
    numbered line, or at a blank line once it is long enough to keep.
    """
    prompts: list[str] = []
    current = ""
    collecting = False

    for raw_line in content.split("\n"):
        line = raw_line.strip()
        match = NUMBERED_LINE_RE.match(line)

        if match:
            if _is_prompt(current):
                prompts.append(current.strip())
            current = match.group(2).strip()
            # "0." never opens a paragraph for continuation lines
            collecting = int(match.group(1)) > 0
        elif collecting and line:
            cleaned = _clean_continuation(line)
            if cleaned:
                current = f"{current} {cleaned}" if current else cleaned
        elif not line and _is_prompt(current):
            prompts.append(current.strip())
            current = ""
            collecting = False

    if _is_prompt(current):
        prompts.append(current.strip())

    return prompts


def extract_prompts(content: str) -> list[str]:
    """Extract candidate prompts from an assistant message.

    Quoted numbered items win when present; otherwise numbered paragraphs
    are collected.
    """
    quoted = extract_quoted_prompts(content)
    if quoted:
        return [prompt for prompt in quoted if _is_prompt(prompt)]

    return [prompt for prompt in extract_numbered_paragraphs(content) if _is_prompt(prompt)]
