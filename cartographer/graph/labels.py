"""Label index and selector evaluation.

The index maps ``key=value`` to the pods and pod-template controllers carrying
that label, so selector-based analyzers look candidates up instead of
comparing every selector against every resource.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from cartographer.models import LabelSelectorRequirement, Resource


def labels_match(selector: Mapping[str, str], labels: Mapping[str, str]) -> bool:
    """True if every key/value pair of ``selector`` is present in ``labels``."""
    return all(k in labels and labels[k] == v for k, v in selector.items())


def matches_expressions(
    exprs: Sequence[LabelSelectorRequirement], labels: Mapping[str, str]
) -> bool:
    """True if ``labels`` satisfy every requirement. An empty list matches anything."""
    for expr in exprs:
        exists = expr.key in labels
        value = labels.get(expr.key)
        if expr.operator == "In":
            if not exists or value not in expr.values:
                return False
        elif expr.operator == "NotIn":
            if exists and value in expr.values:
                return False
        elif expr.operator == "Exists":
            if not exists:
                return False
        elif expr.operator == "DoesNotExist":
            if exists:
                return False
    return True


def extract_match_expressions(selector: Any) -> list[LabelSelectorRequirement]:
    """Read ``matchExpressions`` from a selector mapping. Malformed entries are skipped."""
    if not isinstance(selector, Mapping):
        return []
    raw = selector.get("matchExpressions")
    if not isinstance(raw, list):
        return []

    result = []
    for item in raw:
        if not isinstance(item, Mapping):
            continue
        key = item.get("key")
        operator = item.get("operator")
        if not isinstance(key, str) or not key or not isinstance(operator, str) or not operator:
            continue
        raw_values = item.get("values")
        values = (
            tuple(v for v in raw_values if isinstance(v, str))
            if isinstance(raw_values, list)
            else ()
        )
        result.append(LabelSelectorRequirement(key=key, operator=operator, values=values))
    return result


class LabelIndex:
    """Inverted index ``"key=value"`` -> pods/controllers carrying that label."""

    def __init__(self, entries: Mapping[str, list[Resource]] | None = None):
        self._entries: dict[str, list[Resource]] = dict(entries or {})

    @classmethod
    def build(cls, resources: Iterable[Resource]) -> LabelIndex:
        entries: dict[str, list[Resource]] = {}
        for res in resources:
            if not res.is_pod_or_controller:
                continue
            for k, v in res.labels.items():
                entries.setdefault(f"{k}={v}", []).append(res)
        return cls(entries)

    def __len__(self) -> int:
        return len(self._entries)

    def candidates(self, key: str, value: str) -> list[Resource]:
        return list(self._entries.get(f"{key}={value}", []))

    def match(self, selector: Mapping[str, str]) -> list[Resource]:
        """Every indexed resource whose labels are a superset of ``selector``.

        An empty selector matches nothing.
        """
        if not selector:
            return []

        # Start from the rarest label to keep the filtering pass small.
        smallest: list[Resource] = []
        for k, v in selector.items():
            candidates = self._entries.get(f"{k}={v}")
            if not candidates:
                return []
            if not smallest or len(candidates) < len(smallest):
                smallest = candidates

        if len(selector) == 1:
            return list(smallest)
        return [res for res in smallest if labels_match(selector, res.labels)]

    def match_selector(
        self,
        match_labels: Mapping[str, str],
        exprs: Sequence[LabelSelectorRequirement],
    ) -> list[Resource]:
        """Evaluate a full selector (matchLabels AND matchExpressions).

        With no matchLabels the pool is every indexed resource. A selector with
        neither part matches nothing.
        """
        if not match_labels and not exprs:
            return []

        if match_labels:
            candidates = self.match(match_labels)
        else:
            seen: set[str] = set()
            candidates = []
            for resources in self._entries.values():
                for res in resources:
                    if res.id in seen:
                        continue
                    seen.add(res.id)
                    candidates.append(res)

        if not exprs:
            return candidates
        return [res for res in candidates if matches_expressions(exprs, res.labels)]
