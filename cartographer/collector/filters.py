"""Config-driven exclusion of resources before analysis."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from cartographer.models import Resource

logger = logging.getLogger(__name__)


def apply_filters(
    resources: Sequence[Resource],
    exclude_kinds: Iterable[str] = (),
    exclude_names: Iterable[str] = (),
) -> list[Resource]:
    """Drop resources whose kind (case-insensitive) or name (exact) is excluded."""
    kinds = {k.lower() for k in exclude_kinds}
    names = set(exclude_names)
    if not kinds and not names:
        return list(resources)

    result = []
    for res in resources:
        if res.kind.lower() in kinds:
            logger.debug("Excluded resource %s (kind)", res.id)
            continue
        if res.name in names:
            logger.debug("Excluded resource %s (name)", res.id)
            continue
        result.append(res)

    logger.debug(
        "Filter complete: %d excluded, %d remaining", len(resources) - len(result), len(result)
    )
    return result
