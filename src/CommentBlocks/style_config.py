from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

from .model import ElementType, Inset
from .styles import DEFAULT_ELEMENT_ATTRIBUTES, DEFAULT_POLICY, StylePolicy


def load_style_policy(text: str) -> StylePolicy:
    """Build a StylePolicy from a YAML theme layered over the defaults.

    Recognised keys: ``base`` (attribute mapping), ``elements`` (element type
    name -> attribute mapping), ``list_indent`` and ``inset``.
    """
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError("Style YAML root must be a mapping.")

    base = DEFAULT_POLICY.base.merged(_mapping(data.get("base"), "base"))

    element_attributes: Dict[ElementType, Dict[str, Any]] = {
        element_type: dict(values) for element_type, values in DEFAULT_ELEMENT_ATTRIBUTES.items()
    }
    for name, values in _mapping(data.get("elements"), "elements").items():
        element_type = _element_type(name)
        element_attributes.setdefault(element_type, {}).update(_mapping(values, f"elements.{name}"))

    list_indent = data.get("list_indent", DEFAULT_POLICY.list_indent)
    if not isinstance(list_indent, (int, float)) or isinstance(list_indent, bool):
        raise ValueError(f"list_indent must be a number, got {list_indent!r}")

    return StylePolicy(
        base=base,
        element_attributes=element_attributes,
        list_indent=list_indent,
        inset=_inset(data.get("inset")),
    )


def read_style_policy(path: Path) -> StylePolicy:
    return load_style_policy(path.read_text(encoding="utf-8"))


def _mapping(value, section: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"Style section '{section}' must be a mapping.")
    return value


def _element_type(name) -> ElementType:
    try:
        return ElementType(str(name).lower())
    except ValueError:
        raise ValueError(f"Unknown element type in style YAML: {name!r}") from None


def _inset(value) -> Inset:
    if value is None:
        return DEFAULT_POLICY.inset
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return Inset(top=value, left=value, bottom=value, right=value)
    values = _mapping(value, "inset")
    unknown = set(values) - {"top", "left", "bottom", "right"}
    if unknown:
        raise ValueError(f"Unknown inset edges: {sorted(unknown)}")
    return replace(DEFAULT_POLICY.inset, **values)
