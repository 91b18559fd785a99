from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import ValidationError

from app.core.config import get_settings
from app.core.exceptions import ConfigurationError
from app.schemas.curriculum import CurriculumCatalogFile, CurriculumItem

logger = logging.getLogger(__name__)

MatchPolicy = Literal["substring", "strict"]


@dataclass(frozen=True)
class CatalogResolution:
    items: tuple[CurriculumItem, ...]
    unresolved: tuple[str, ...]

    @property
    def total_sessions(self) -> int:
        return sum(item.required_sessions for item in self.items)


class CurriculumCatalog:
    """Maps curriculum/software identifiers to their required session counts.

    Lookup order: exact match, case-insensitive match, explicit alias, and
    (under the ``substring`` policy) a case-insensitive substring match in
    either direction, where the first catalog entry in file order wins.
    """

    def __init__(
        self,
        entries: Iterable[CurriculumItem] | Mapping[str, int],
        *,
        aliases: Mapping[str, str] | None = None,
        match_policy: MatchPolicy = "substring",
    ) -> None:
        if isinstance(entries, Mapping):
            entries = [CurriculumItem(identifier=key, required_sessions=value) for key, value in entries.items()]
        self._entries: tuple[CurriculumItem, ...] = tuple(entries)
        self._exact = {item.identifier: item for item in self._entries}
        self._folded: dict[str, CurriculumItem] = {}
        for item in self._entries:
            self._folded.setdefault(item.identifier.lower(), item)
        self._aliases = {
            alias.strip().lower(): self._exact[target]
            for alias, target in (aliases or {}).items()
            if target in self._exact
        }
        self._raw_aliases = dict(aliases or {})
        self.match_policy = match_policy

    @property
    def entries(self) -> tuple[CurriculumItem, ...]:
        return self._entries

    @property
    def aliases(self) -> dict[str, str]:
        return dict(self._raw_aliases)

    def resolve(self, identifier: str | None) -> CurriculumItem | None:
        query = (identifier or "").strip()
        if not query:
            return None
        if query in self._exact:
            return self._exact[query]
        folded = query.lower()
        if folded in self._folded:
            return self._folded[folded]
        if folded in self._aliases:
            return self._aliases[folded]
        if self.match_policy != "substring":
            return None
        for item in self._entries:
            candidate = item.identifier.lower()
            if folded in candidate or candidate in folded:
                return item
        return None

    def sessions_for(self, identifier: str | None) -> int:
        item = self.resolve(identifier)
        if item is None:
            logger.debug("No catalog entry for curriculum identifier %r; counting 0 sessions", identifier)
            return 0
        return item.required_sessions

    def resolve_all(self, identifiers: Iterable[str]) -> CatalogResolution:
        items: list[CurriculumItem] = []
        unresolved: list[str] = []
        for identifier in identifiers:
            item = self.resolve(identifier)
            if item is None:
                unresolved.append(identifier)
            else:
                items.append(item)
        if unresolved:
            logger.debug("Unresolved curriculum identifiers: %s", ", ".join(map(repr, unresolved)))
        return CatalogResolution(items=tuple(items), unresolved=tuple(unresolved))

    def total_sessions(self, identifiers: Iterable[str]) -> int:
        return sum(self.sessions_for(identifier) for identifier in identifiers)

    def identifiers_match(self, first: str | None, second: str | None) -> bool:
        """Whether two identifiers name the same curriculum under the active policy."""
        left = (first or "").strip().lower()
        right = (second or "").strip().lower()
        if not left or not right:
            return False
        if left == right:
            return True
        if self.match_policy == "substring" and (left in right or right in left):
            return True
        left_item = self.resolve(first)
        return left_item is not None and left_item == self.resolve(second)

    def matches_any(self, interests: Iterable[str], identifiers: Iterable[str]) -> bool:
        wanted = [identifier for identifier in identifiers if identifier and identifier.strip()]
        return any(self.identifiers_match(interest, identifier) for interest in interests for identifier in wanted)


def load_catalog(path: Path, *, match_policy: MatchPolicy = "substring") -> CurriculumCatalog:
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Unable to read curriculum catalog at {path}: {exc}") from exc

    # A bare {"identifier": sessions} mapping is accepted as well.
    if isinstance(raw, dict) and "entries" not in raw:
        raw = {"entries": [{"identifier": key, "required_sessions": value} for key, value in raw.items()]}
    try:
        parsed = CurriculumCatalogFile.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid curriculum catalog at {path}: {exc}") from exc

    logger.info("Loaded %d curriculum entries from %s (policy=%s)", len(parsed.entries), path, match_policy)
    return CurriculumCatalog(parsed.entries, aliases=parsed.aliases, match_policy=match_policy)


@lru_cache
def get_curriculum_catalog() -> CurriculumCatalog:
    settings = get_settings()
    return load_catalog(settings.curriculum_catalog_path, match_policy=settings.curriculum_match_policy)
