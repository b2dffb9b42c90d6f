from __future__ import annotations

import logging
import threading
from typing import Dict, Iterable, List, Optional

from billing_graph.app.core.errors import RegistryFrozenError
from billing_graph.app.models.registry import EntityMetadata

logger = logging.getLogger(__name__)


class TypeRegistry:
    """
    Token -> EntityMetadata lookup table, filled by feature modules at start-up.

    Registration and serving are two phases: once `freeze()` has been called
    (the materializer does it on first use) `register` raises.
    """

    def __init__(self, entries: Optional[Iterable[EntityMetadata]] = None):
        self._by_token: Dict[str, EntityMetadata] = {}
        self._frozen = False
        self._lock = threading.Lock()
        for meta in entries or []:
            self.register(meta.token, meta)

    def register(self, token: str, metadata: EntityMetadata) -> None:
        """Adds or replaces the metadata served under `token` (usually `metadata.token`)."""
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError(token)
            replaced = token in self._by_token
            self._by_token[token] = metadata
        logger.debug("%s entity type %s (label=%s)", "Replaced" if replaced else "Registered", token, metadata.label)

    def freeze(self) -> None:
        with self._lock:
            if not self._frozen:
                self._frozen = True
                logger.debug("Type registry frozen with %d types", len(self._by_token))

    @property
    def frozen(self) -> bool:
        return self._frozen

    def resolve_by_token(self, token: str) -> Optional[EntityMetadata]:
        return self._by_token.get(token)

    def resolve_by_label(self, label: str) -> Optional[EntityMetadata]:
        # first registered wins on label collisions
        for meta in self._by_token.values():
            if meta.label == label:
                return meta
        return None

    def tokens(self) -> List[str]:
        return list(self._by_token)

    def entries(self) -> List[EntityMetadata]:
        return list(self._by_token.values())

    def __contains__(self, token: object) -> bool:
        return token in self._by_token

    def __len__(self) -> int:
        return len(self._by_token)


# Process-wide registry populated by billing_graph.app.bootstrap
type_registry = TypeRegistry()
