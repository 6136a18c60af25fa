"""Comment and blank-line stripping for raw source text."""

from __future__ import annotations

import re
from typing import List

from ..models import ContentLine

_LINE_COMMENT = re.compile(r"//.*")
_INLINE_BLOCK_COMMENT = re.compile(r"/\*.*?\*/")
_BLOCK_OPEN = "/*"
_BLOCK_CLOSE = "*/"


def normalize(contents: str) -> List[ContentLine]:
    """Return the content lines of ``contents`` numbered by physical line.

    Block comments are tracked with a binary flag, so nested comments are not
    supported. A line that closes one block comment and opens another is
    resolved in that order: the close is stripped first, then the open.
    """
    in_block = False
    lines: List[ContentLine] = []
    for index, raw in enumerate(contents.split("\n"), start=1):
        line = raw
        if in_block:
            close = line.find(_BLOCK_CLOSE)
            if close == -1:
                continue
            line = line[close + len(_BLOCK_CLOSE) :]
            in_block = False

        line = _LINE_COMMENT.sub("", line)
        line = _INLINE_BLOCK_COMMENT.sub("", line)

        opened = line.find(_BLOCK_OPEN)
        if opened != -1:
            line = line[:opened]
            in_block = True

        text = line.strip()
        if text:
            lines.append(ContentLine(line_number=index, text=text, position=len(lines) + 1))
    return lines


__all__ = ["normalize"]
