"""Condition predicates attached to group assignments and direct grants.

A condition document is evaluated against the request context. Versioned form::

    {"version": 1, "all": [{"attr": "owner_id", "op": "eq", "value": {"ctx": "user_id"}}]}
    {"version": 1, "any": [{"attr": "region", "op": "in", "value": ["eu", "us"]},
                           {"all": [...]}]}

Flat documents without a version (e.g. ``{"max_amount": 1000, "currency": "BRL"}``)
are accepted as legacy shorthand: plain keys mean equality, ``max_<attr>``
means ``attr <= value`` and ``min_<attr>`` means ``attr >= value``.
"""

from __future__ import annotations

import operator
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

import jsonschema

from authz.domain.exceptions import ConditionEvaluationError

CONDITIONS_SCHEMA_VERSION = 1
CONTEXT_REF_KEY = "ctx"
_LEGACY_MAX_PREFIX = "max_"
_LEGACY_MIN_PREFIX = "min_"

_COMPARATORS: dict[str, Callable[[Any, Any], bool]] = {
    "eq": operator.eq,
    "ne": operator.ne,
    "lt": operator.lt,
    "lte": operator.le,
    "gt": operator.gt,
    "gte": operator.ge,
}
_MEMBERSHIP_OPS = frozenset({"in", "not_in"})
OPERATORS: frozenset[str] = frozenset(_COMPARATORS) | _MEMBERSHIP_OPS | {"exists"}

CONDITIONS_JSON_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "properties": {
        "version": {"const": CONDITIONS_SCHEMA_VERSION},
        "all": {"$ref": "#/$defs/clauses"},
        "any": {"$ref": "#/$defs/clauses"},
    },
    "required": ["version"],
    "oneOf": [{"required": ["all"]}, {"required": ["any"]}],
    "additionalProperties": False,
    "$defs": {
        "clauses": {"type": "array", "items": {"$ref": "#/$defs/clause"}},
        "clause": {"oneOf": [{"$ref": "#/$defs/rule"}, {"$ref": "#/$defs/group"}]},
        "rule": {
            "type": "object",
            "properties": {
                "attr": {"type": "string", "minLength": 1},
                "op": {"enum": sorted(OPERATORS)},
                "value": {},
            },
            "required": ["attr", "op"],
            "additionalProperties": False,
            "if": {"properties": {"op": {"not": {"const": "exists"}}}},
            "then": {"required": ["value"]},
        },
        "group": {
            "type": "object",
            "properties": {
                "all": {"$ref": "#/$defs/clauses"},
                "any": {"$ref": "#/$defs/clauses"},
            },
            "minProperties": 1,
            "maxProperties": 1,
            "additionalProperties": False,
        },
    },
}

_MISSING = object()


def _from_legacy(raw: Mapping[str, Any]) -> dict[str, Any]:
    rules: list[dict[str, Any]] = []
    for key, value in raw.items():
        if key.startswith(_LEGACY_MAX_PREFIX) and len(key) > len(_LEGACY_MAX_PREFIX):
            rules.append({"attr": key[len(_LEGACY_MAX_PREFIX):], "op": "lte", "value": value})
        elif key.startswith(_LEGACY_MIN_PREFIX) and len(key) > len(_LEGACY_MIN_PREFIX):
            rules.append({"attr": key[len(_LEGACY_MIN_PREFIX):], "op": "gte", "value": value})
        else:
            rules.append({"attr": key, "op": "eq", "value": value})
    return {"version": CONDITIONS_SCHEMA_VERSION, "all": rules}


def _lookup(context: Mapping[str, Any], path: str) -> Any:
    """Resolve a dotted path into nested mappings; _MISSING when absent."""
    current: Any = context
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _resolve_value(value: Any, context: Mapping[str, Any]) -> Any:
    if isinstance(value, Mapping) and set(value) == {CONTEXT_REF_KEY}:
        return _lookup(context, str(value[CONTEXT_REF_KEY]))
    return value


@dataclass(frozen=True)
class ConditionSet:
    """Validated condition document (versioned form).

    Build with ConditionSet.parse(); evaluate with evaluate(context).
    """

    document: dict[str, Any]

    @classmethod
    def parse(cls, raw: Mapping[str, Any] | None) -> ConditionSet | None:
        """Validate raw and return a ConditionSet, or None when there are no conditions.

        Raises:
            ConditionEvaluationError: If raw is not a valid condition document.
        """
        if raw is None:
            return None
        if not isinstance(raw, Mapping):
            raise ConditionEvaluationError(
                "Conditions must be a JSON object", conditions=raw
            )
        if not raw:
            return None
        document = dict(raw) if "version" in raw else _from_legacy(raw)
        try:
            jsonschema.validate(instance=document, schema=CONDITIONS_JSON_SCHEMA)
        except jsonschema.ValidationError as e:
            raise ConditionEvaluationError(
                f"Invalid conditions document: {e.message}", conditions=dict(raw)
            ) from e
        return cls(document=document)

    def evaluate(self, context: Mapping[str, Any]) -> bool:
        """Return True when the document holds for context.

        Missing attributes make a rule false (except 'exists').

        Raises:
            ConditionEvaluationError: If a rule cannot be evaluated (e.g.
                ordering between incompatible types, 'in' against a non-list).
        """
        return self._evaluate_group(self.document, context)

    def to_dict(self) -> dict[str, Any]:
        return dict(self.document)

    def _evaluate_group(self, group: Mapping[str, Any], context: Mapping[str, Any]) -> bool:
        if "all" in group:
            return all(self._evaluate_clause(c, context) for c in group["all"])
        return any(self._evaluate_clause(c, context) for c in group["any"])

    def _evaluate_clause(self, clause: Mapping[str, Any], context: Mapping[str, Any]) -> bool:
        if "attr" in clause:
            return self._evaluate_rule(clause, context)
        return self._evaluate_group(clause, context)

    def _evaluate_rule(self, rule: Mapping[str, Any], context: Mapping[str, Any]) -> bool:
        op = rule["op"]
        actual = _lookup(context, rule["attr"])
        if op == "exists":
            expected_present = bool(rule.get("value", True))
            return (actual is not _MISSING) == expected_present
        if actual is _MISSING:
            return False
        expected = _resolve_value(rule["value"], context)
        if expected is _MISSING:
            return False
        if op in _MEMBERSHIP_OPS:
            if not isinstance(expected, (list, tuple, set, frozenset)):
                raise ConditionEvaluationError(
                    f"Operator {op!r} requires a list value for {rule['attr']!r}",
                    conditions=self.document,
                )
            found = actual in expected
            return found if op == "in" else not found
        try:
            return bool(_COMPARATORS[op](actual, expected))
        except TypeError as e:
            raise ConditionEvaluationError(
                f"Cannot compare {rule['attr']!r} with operator {op!r}: {e}",
                conditions=self.document,
            ) from e


def evaluate_conditions(raw: Mapping[str, Any] | None, context: Mapping[str, Any]) -> bool:
    """Parse and evaluate raw conditions; absent conditions always hold.

    Raises:
        ConditionEvaluationError: If raw is malformed or cannot be evaluated.
    """
    condition_set = ConditionSet.parse(raw)
    if condition_set is None:
        return True
    return condition_set.evaluate(context)
