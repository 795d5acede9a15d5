"""Load venue templates from YAML into a read-only registry."""

from __future__ import annotations

import logging
import pathlib
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

import yaml

from ..errors import TemplateConfigError
from ..models import Template, TemplateStructure

logger = logging.getLogger(__name__)

_REQUIRED_KEYS = ("id", "name", "document_class", "structure", "sample_code")


class TemplateRegistry:
    """Immutable catalogue of templates keyed by id."""

    def __init__(self, templates: Mapping[str, Template]):
        self._templates = MappingProxyType(dict(templates))

    def lookup(self, template_id: Optional[str]) -> Optional[Template]:
        if not isinstance(template_id, str):
            return None
        return self._templates.get(template_id)

    def ids(self) -> List[str]:
        return list(self._templates)

    def __iter__(self) -> Iterator[Template]:
        return iter(self._templates.values())

    def __len__(self) -> int:
        return len(self._templates)

    def __contains__(self, template_id: object) -> bool:
        return template_id in self._templates


def load_registry(path: Union[str, pathlib.Path]) -> TemplateRegistry:
    """Read the catalogue file and build the registry.

    Raises:
        TemplateConfigError: the file is missing, not a mapping with a
            ``templates`` list, or an entry is malformed or duplicated.
    """
    path = pathlib.Path(path)
    if not path.exists():
        raise TemplateConfigError(f"Template catalogue not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    entries = data.get("templates") if isinstance(data, dict) else None
    if not isinstance(entries, list):
        raise TemplateConfigError(f"{path}: expected a top-level 'templates' list")

    templates: Dict[str, Template] = {}
    for entry in entries:
        template = _parse_template(entry)
        if template.id in templates:
            raise TemplateConfigError(f"Duplicate template id: {template.id!r}")
        templates[template.id] = template

    logger.info("Loaded %d templates from %s", len(templates), path)
    return TemplateRegistry(templates)


def _parse_template(entry: Any) -> Template:
    if not isinstance(entry, dict):
        raise TemplateConfigError(f"Template entry must be a mapping, got {type(entry).__name__}")
    missing = [k for k in _REQUIRED_KEYS if k not in entry]
    if missing:
        raise TemplateConfigError(f"Template {entry.get('id', '?')!r} is missing keys: {missing}")

    structure = entry["structure"]
    if not isinstance(structure, dict):
        raise TemplateConfigError(f"Template {entry['id']!r}: structure must be a mapping")
    columns = structure.get("columns")
    max_pages = structure.get("max_pages")
    for label, value in (("columns", columns), ("max_pages", max_pages)):
        if not isinstance(value, int) or isinstance(value, bool) or value < 1:
            raise TemplateConfigError(
                f"Template {entry['id']!r}: structure.{label} must be a positive integer, got {value!r}"
            )

    return Template(
        id=str(entry["id"]),
        name=str(entry["name"]),
        document_class=str(entry["document_class"]),
        required_packages=tuple(str(p) for p in entry.get("required_packages") or ()),
        structure=TemplateStructure(
            columns=columns,
            max_pages=max_pages,
            abstract_required=bool(structure.get("abstract_required", False)),
            keywords_required=bool(structure.get("keywords_required", False)),
        ),
        formatting_rules=tuple(str(r) for r in entry.get("formatting_rules") or ()),
        sample_code=str(entry["sample_code"]),
    )


def template_summary(template: Template) -> Dict[str, Any]:
    """Plain-dict view of a template for JSON responses."""
    return {
        "id": template.id,
        "name": template.name,
        "documentClass": template.document_class,
        "requiredPackages": list(template.required_packages),
        "structure": {
            "columns": template.structure.columns,
            "maxPages": template.structure.max_pages,
            "abstractRequired": template.structure.abstract_required,
            "keywordsRequired": template.structure.keywords_required,
        },
        "formattingRules": list(template.formatting_rules),
        "sampleCode": template.sample_code,
    }
