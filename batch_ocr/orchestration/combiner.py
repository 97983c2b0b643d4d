"""Merge per-shard batch outputs into one logical response.

Only the page and entity collections named by a ``MergeRule`` are
concatenated. Every other field (text, metadata such as page counts) is
taken from the first part as-is and is not recomputed; callers that need
aggregate counts should derive them from the merged collections.
"""

from __future__ import annotations

import copy
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from batch_ocr.errors import EmptyInputError
from batch_ocr.types import ResultPart


@dataclass(frozen=True)
class MergeRule:
    page_field: str
    entity_field: str | None = None
    # Optional wrapper object holding the collections, e.g. {"document": {...}}.
    container_field: str | None = None

    def node(self, part: dict[str, Any]) -> dict[str, Any]:
        if self.container_field:
            inner = part.get(self.container_field)
            if isinstance(inner, dict):
                return inner
        return part


DOCUMENT_AI_MERGE = MergeRule(page_field="pages", entity_field="entities", container_field="document")
TEXTRACT_MERGE = MergeRule(page_field="Blocks")


def _items(node: dict[str, Any], field: str) -> list[Any]:
    v = node.get(field)
    return list(v) if isinstance(v, list) else []


def combine_responses(parts: Sequence[ResultPart], rule: MergeRule = DOCUMENT_AI_MERGE) -> ResultPart:
    if not parts:
        raise EmptyInputError("No responses to combine.")

    if len(parts) == 1:
        return parts[0]

    combined = copy.deepcopy(parts[0])
    target = rule.node(combined)

    pages = _items(target, rule.page_field)
    entities = _items(target, rule.entity_field) if rule.entity_field else []
    saw_entities = bool(rule.entity_field and rule.entity_field in target)

    for part in parts[1:]:
        node = rule.node(part)
        pages.extend(copy.deepcopy(_items(node, rule.page_field)))
        if rule.entity_field and rule.entity_field in node:
            saw_entities = True
            entities.extend(copy.deepcopy(_items(node, rule.entity_field)))

    target[rule.page_field] = pages
    if rule.entity_field and saw_entities:
        target[rule.entity_field] = entities
    return combined
