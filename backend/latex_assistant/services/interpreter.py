"""Recover LaTeX source from a free-form model reply."""

import re
from typing import List, Optional

LATEX_FENCE_TAGS = {"", "latex", "tex"}
DOCUMENT_MARKERS = ("\\documentclass", "\\begin{document}")

# Any fenced block. Non-LaTeX blocks are matched too so that their closing
# fence is consumed and cannot open a bogus block with a later fence.
_FENCE_RE = re.compile(r"```([^\n`]*)\r?\n(.*?)(?:\r?\n)?```", re.DOTALL)


def fenced_latex_blocks(reply_text: str) -> List[str]:
    blocks = []
    for m in _FENCE_RE.finditer(reply_text):
        header = m.group(1).strip().split()
        tag = header[0].lower() if header else ""
        if tag in LATEX_FENCE_TAGS:
            blocks.append(m.group(2))
    return blocks


def looks_like_document(reply_text: str) -> bool:
    return any(marker in reply_text for marker in DOCUMENT_MARKERS)


def extract_latex(reply_text: Optional[str]) -> Optional[str]:
    """Return the LaTeX source contained in ``reply_text``, or None.

    Fenced ``latex``/``tex``/untagged blocks win and are joined with a blank
    line; otherwise a reply that contains a document marker is returned
    trimmed; anything else is conversational prose.
    """
    if not reply_text:
        return None
    blocks = fenced_latex_blocks(reply_text)
    if blocks:
        return "\n\n".join(blocks)
    if looks_like_document(reply_text):
        return reply_text.strip()
    return None
