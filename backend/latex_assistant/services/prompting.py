from typing import List, Optional

from ..models import RequestMode, Template

SNAPSHOT_CHARS = 2000
EMPTY_DOCUMENT_PLACEHOLDER = "New document"

DEFAULT_FREEFORM_ROLE = (
    "You are an expert LaTeX code writer and academic writing assistant. "
    "Write actual LaTeX code that users can directly use.\n"
    "When asked to write content, actually write it: include real text, never placeholders "
    "like \"your content here\" or empty section scaffolding.\n"
    "Use proper LaTeX formatting and packages, and provide code that can be copied directly into the editor."
)

DEFAULT_RESTRUCTURE_ROLE = (
    "You are an expert LaTeX editor. Reformat the user's existing document so that it follows "
    "the structural rules below.\n"
    "Preserve every piece of the author's content (text, equations, tables, figures, citations); "
    "do not summarize, shorten, or invent content."
)

OUTPUT_CONTRACT = (
    "Output requirements:\n"
    "- Return the complete revised LaTeX document, from \\documentclass to \\end{document}.\n"
    "- Wrap it in a single fenced code block that starts with ```latex and ends with ```.\n"
    "- Do not write any text before or after the code block."
)


def snapshot(document: Optional[str]) -> str:
    """First SNAPSHOT_CHARS characters of the document buffer."""
    return (document or "")[:SNAPSHOT_CHARS]


def render_template_block(template: Template) -> str:
    s = template.structure
    parts = [
        f"Target template: {template.name}",
        f"Document class: {template.document_class}",
        "Required packages:",
        *template.required_packages,
        "Structural constraints:",
        f"- Columns: {s.columns}",
        f"- Maximum pages: {s.max_pages}",
        f"- Abstract required: {_yes_no(s.abstract_required)}",
        f"- Keywords required: {_yes_no(s.keywords_required)}",
        "Formatting rules:",
        *[f"{i}. {rule}" for i, rule in enumerate(template.formatting_rules, start=1)],
        "Sample structure:",
        template.sample_code,
    ]
    return "\n".join(parts)


def compose_instruction(
    *,
    mode: RequestMode,
    intent_text: str,
    document_snapshot: str,
    template: Optional[Template] = None,
    prompts: Optional[dict] = None,
) -> str:
    """Render the full instruction text for one generation request.

    The result depends only on the arguments, so the same inputs always give
    the same string.
    """
    mode = RequestMode(mode)
    system_prompts = (prompts or {}).get("system", {}) or {}
    if mode is RequestMode.RESTRUCTURE:
        role = system_prompts.get("restructure") or DEFAULT_RESTRUCTURE_ROLE
    else:
        role = system_prompts.get("freeform") or DEFAULT_FREEFORM_ROLE

    blocks: List[str] = [role.strip()]
    if template is not None:
        blocks.append(render_template_block(template))

    current = document_snapshot if document_snapshot and document_snapshot.strip() else EMPTY_DOCUMENT_PLACEHOLDER
    blocks.append("Current document:\n" + current)

    if mode is RequestMode.RESTRUCTURE:
        blocks.append(OUTPUT_CONTRACT)

    return "\n\n".join(blocks) + "\n\n" + intent_text


def _yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"
