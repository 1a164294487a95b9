"""Merge ranking output with the pool into the final catalog."""

from __future__ import annotations

from typing import Iterable, Sequence

from ..catalogs import CatalogDefinition
from ..models import CandidateItem, CatalogMeta, RankedEntry

MAX_CATALOG_ITEMS = 30


def _to_meta(
    definition: CatalogDefinition,
    candidate: CandidateItem,
    *,
    reason: str | None = None,
) -> CatalogMeta:
    return CatalogMeta(
        id=candidate.external_id,
        media_type=definition.content_type,
        display_name=candidate.title or candidate.external_id,
        description=reason,
        release_info=str(candidate.year) if candidate.year else None,
    )


def unranked_metas(
    definition: CatalogDefinition,
    pool: Sequence[CandidateItem],
    watched: Iterable[str],
) -> list[CatalogMeta]:
    """Return the first unwatched pool items in pool order."""

    skip = set(watched)
    metas: list[CatalogMeta] = []
    for candidate in pool:
        if candidate.external_id in skip:
            continue
        metas.append(_to_meta(definition, candidate))
        if len(metas) >= MAX_CATALOG_ITEMS:
            break
    return metas


def ranked_metas(
    definition: CatalogDefinition,
    ranked: Sequence[RankedEntry],
    pool: Sequence[CandidateItem],
    watched: Iterable[str],
) -> list[CatalogMeta]:
    """Resolve ranked entries against the pool, best score first.

    Watched titles, ids the pool does not know and later members of an
    already emitted slug group are skipped.
    """

    by_id = {candidate.external_id: candidate for candidate in pool}
    skip = set(watched)
    seen_groups: set[str] = set()

    metas: list[CatalogMeta] = []
    # sorted() is stable, so equal scores keep the model's order.
    for entry in sorted(ranked, key=lambda item: item.score or 0, reverse=True):
        if not entry.external_id or entry.external_id in skip:
            continue
        candidate = by_id.get(entry.external_id)
        if candidate is None:
            continue
        if candidate.group_slug:
            if candidate.group_slug in seen_groups:
                continue
            seen_groups.add(candidate.group_slug)
        metas.append(_to_meta(definition, candidate, reason=entry.reason))
        if len(metas) >= MAX_CATALOG_ITEMS:
            break
    return metas


def finalize_metas(
    definition: CatalogDefinition,
    ranked: Sequence[RankedEntry],
    pool: Sequence[CandidateItem],
    watched: Iterable[str],
) -> list[CatalogMeta]:
    """Build the catalog, falling back to the unranked pool without a ranking."""

    if not ranked:
        return unranked_metas(definition, pool, watched)
    return ranked_metas(definition, ranked, pool, watched)
