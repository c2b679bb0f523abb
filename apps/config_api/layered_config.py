from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any

LOGGER = logging.getLogger('spot.layered_config')

GLOBAL_SCOPE = '*'
DEX_KEY = 'dex'


class ConfigTreeError(ValueError):
    def __init__(self, detail: str, scope: str | None = None) -> None:
        super().__init__(detail if scope is None else f'scope {scope!r}: {detail}')
        self.scope = scope
        self.detail = detail


class NodeKind(Enum):
    MAPPING = 'mapping'
    SEQUENCE = 'sequence'
    SCALAR = 'scalar'


def node_kind(value: Any) -> NodeKind:
    if isinstance(value, Mapping):
        return NodeKind.MAPPING
    if isinstance(value, (list, tuple)):
        return NodeKind.SEQUENCE
    return NodeKind.SCALAR


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge ``override`` onto ``base`` without mutating either.

    Nested mappings merge key by key. Sequences, scalars and ``None`` from
    ``override`` replace the base value wholesale.
    """
    merged = dict(base)
    for key, value in override.items():
        if node_kind(value) is NodeKind.MAPPING:
            current = merged.get(key)
            if node_kind(current) is not NodeKind.MAPPING:
                current = {}
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def merge_layers(*layers: Mapping[str, Any]) -> dict[str, Any]:
    merged: dict[str, Any] = {}
    for layer in layers:
        merged = deep_merge(merged, layer)
    return merged


def normalize_chain_id(chain_id: Any) -> str | None:
    if not chain_id:
        return None
    normalized = str(chain_id).strip()
    return normalized or None


def _without_dex(scope: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in scope.items() if key != DEX_KEY}


def dex_entries(scope_config: Mapping[str, Any]) -> dict[str, Mapping[str, Any]]:
    dex = scope_config.get(DEX_KEY)
    if node_kind(dex) is not NodeKind.MAPPING:
        return {}
    return {
        str(name): overrides
        for name, overrides in dex.items()
        if node_kind(overrides) is NodeKind.MAPPING
    }


def _validate_tree(tree: Any) -> None:
    if not isinstance(tree, Mapping):
        raise ConfigTreeError(f'config tree must be a mapping, got {type(tree).__name__}')
    for scope, scope_config in tree.items():
        if not isinstance(scope_config, Mapping):
            raise ConfigTreeError(f'must be a mapping, got {type(scope_config).__name__}', scope=str(scope))


class ConfigResolver:
    """Resolves the effective configuration for a chain or a (chain, dex) pair.

    Layers merge in the order global defaults (``"*"``) < chain < dex. The
    ``dex`` field is structural at every level and never appears in a result.
    A missing chain is reported as ``None`` in both call modes; there is no
    fallback to the global defaults alone.

    The two-layer (global + chain) results of every chain are computed once
    on first use and kept for the lifetime of the instance. Dex-level
    results are recomputed per call.
    """

    def __init__(self, tree: Mapping[str, Any]) -> None:
        _validate_tree(tree)
        self._tree: dict[str, Mapping[str, Any]] = {str(key): value for key, value in tree.items()}
        self._chain_defaults: dict[str, dict[str, Any]] | None = None

    def chain_ids(self) -> list[str]:
        return sorted(key for key in self._tree if key != GLOBAL_SCOPE)

    def dex_names(self, chain_id: Any) -> list[str]:
        key = normalize_chain_id(chain_id)
        if key is None or key == GLOBAL_SCOPE:
            return []
        chain_config = self._tree.get(key)
        if chain_config is None:
            return []
        return sorted(dex_entries(chain_config))

    def chain_defaults(self, chain_id: Any) -> dict[str, Any] | None:
        key = normalize_chain_id(chain_id)
        if key is None or key == GLOBAL_SCOPE:
            return None
        merged = self._merged_chains().get(key)
        if merged is None:
            LOGGER.debug('chain not configured chain_id=%s', key)
            return None
        return copy.deepcopy(merged)

    def resolve(self, chain_id: Any, dex_name: str | None = None) -> dict[str, Any] | None:
        if dex_name is None:
            return self.chain_defaults(chain_id)

        key = normalize_chain_id(chain_id)
        name = str(dex_name).strip()
        if key is None or key == GLOBAL_SCOPE or not name:
            LOGGER.debug('rejected lookup chain_id=%r dex=%r', chain_id, dex_name)
            return None

        base = self._merged_chains().get(key)
        if base is None:
            LOGGER.debug('chain not configured chain_id=%s', key)
            return None

        overrides = dex_entries(self._tree[key]).get(name)
        if overrides is None:
            LOGGER.debug('dex not configured chain_id=%s dex=%s', key, name)
            return None

        return copy.deepcopy(deep_merge(base, _without_dex(overrides)))

    def cache_clear(self) -> None:
        self._chain_defaults = None

    def _merged_chains(self) -> dict[str, dict[str, Any]]:
        # Recomputing after a lost race yields an equal table, so no lock.
        if self._chain_defaults is None:
            global_defaults = _without_dex(self._tree.get(GLOBAL_SCOPE) or {})
            self._chain_defaults = {
                key: merge_layers(global_defaults, _without_dex(scope_config))
                for key, scope_config in self._tree.items()
                if key != GLOBAL_SCOPE
            }
            LOGGER.debug('built chain defaults for %d chains', len(self._chain_defaults))
        return self._chain_defaults
