"""Text helpers available inside every template.

The set is fixed: templates call them as plain functions, e.g.
``{{ mdFence("go", fix.output) }}`` or ``{{ truncate(80, prompt) }}``.
"""

from __future__ import annotations

from typing import Any

TAB_WIDTH = 4


def truncate(length: int, text: str) -> str:
    """Shorten ``text`` to at most ``length`` characters.

    Longer text keeps its first ``length - 3`` characters followed by
    ``...``; when ``length`` is 3 or less it is cut hard instead.
    """
    if len(text) <= length:
        return text
    if length <= 3:
        return text[: max(length, 0)]
    return text[: length - 3] + "..."


def md_fence(language: str, text: str) -> str:
    """Wrap ``text`` in a Markdown code fence, tagged when ``language`` is set."""
    return f"```{language}\n{text}\n```"


def indent(spaces: int, text: str) -> str:
    """Prefix every non-blank line of ``text`` with ``spaces`` spaces."""
    if spaces <= 0:
        return text
    pad = " " * spaces
    return "\n".join(pad + line if line.strip() else line for line in text.split("\n"))


def _leading_columns(line: str) -> int:
    cols = 0
    for ch in line:
        if ch == " ":
            cols += 1
        elif ch == "\t":
            cols += TAB_WIDTH
        else:
            break
    return cols


def _strip_columns(line: str, width: int) -> str:
    removed = 0
    for i, ch in enumerate(line):
        if removed >= width:
            return line[i:]
        if ch == " ":
            removed += 1
        elif ch == "\t":
            removed += TAB_WIDTH
            if removed > width:
                # partially consumed tab leaves its remainder as spaces
                return " " * (removed - width) + line[i + 1 :]
        else:
            break
    return line


def dedent(text: str) -> str:
    """Remove the common leading indentation of all non-blank lines.

    Tabs count as four columns. Blank lines are kept untouched and do not
    take part in computing the common indentation.
    """
    lines = text.split("\n")
    widths = [_leading_columns(line) for line in lines if line.strip()]
    if not widths:
        return text
    common = min(widths)
    if common <= 0:
        return text
    return "\n".join(
        _strip_columns(line, common) if line.strip() else line for line in lines
    )


def template_globals() -> dict[str, Any]:
    """Helper callables keyed by the names templates use."""
    return {
        "truncate": truncate,
        "mdFence": md_fence,
        "indent": indent,
        "dedent": dedent,
    }
