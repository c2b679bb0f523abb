from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .layered_config import GLOBAL_SCOPE, dex_entries, normalize_chain_id

LOGGER = logging.getLogger('spot.abi_registry')

# registry name -> forge artifact (contract) name
ABI_ARTIFACTS: dict[str, str] = {
    'wm': 'WM',
    'repermit': 'RePermit',
    'reactor': 'OrderReactor',
    'executor': 'Executor',
    'refinery': 'Refinery',
    'adapter': 'DefaultDexAdapter'
}

AbiRegistry = dict[str, dict[str, dict[str, Any]]]


def build_abi_registry(tree: Mapping[str, Any], documents: Mapping[str, Any]) -> AbiRegistry:
    """Map every configured (chain, dex) pair to the full set of ABI documents.

    Documents are shared by reference across entries and must be treated as
    read-only. Chains without a non-empty ``dex`` mapping are left out, and so
    are dex entries that are not mappings themselves.
    """
    registry: AbiRegistry = {}
    for chain_id, scope_config in tree.items():
        if chain_id == GLOBAL_SCOPE or not isinstance(scope_config, Mapping):
            continue
        entries = dex_entries(scope_config)
        if not entries:
            continue
        registry[str(chain_id)] = {name: dict(documents) for name in entries}
    return registry


class AbiRegistryBuilder:
    def __init__(self, tree: Mapping[str, Any], documents: Mapping[str, Any]) -> None:
        self._tree = tree
        self._documents = documents
        self._registry: AbiRegistry | None = None

    def build(self) -> AbiRegistry:
        registry = self._cached()
        # Fresh containers per call; the documents themselves stay shared.
        return {
            chain_id: {name: dict(bundle) for name, bundle in entries.items()}
            for chain_id, entries in registry.items()
        }

    def documents_for(self, chain_id: Any, dex_name: str | None) -> dict[str, Any] | None:
        key = normalize_chain_id(chain_id)
        name = str(dex_name or '').strip()
        if key is None or not name:
            return None
        bundle = self._cached().get(key, {}).get(name)
        if bundle is None:
            return None
        return dict(bundle)

    def cache_clear(self) -> None:
        self._registry = None

    def _cached(self) -> AbiRegistry:
        if self._registry is None:
            self._registry = build_abi_registry(self._tree, self._documents)
            LOGGER.debug(
                'built abi registry chains=%d pairs=%d',
                len(self._registry),
                sum(len(entries) for entries in self._registry.values())
            )
        return self._registry
