from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

from .abi_registry import AbiRegistry, AbiRegistryBuilder
from .config import get_settings
from .layered_config import ConfigResolver
from .loaders import load_abis, load_config_tree

LOGGER = logging.getLogger('spot.service')


@lru_cache(maxsize=1)
def _config_tree() -> dict[str, Any]:
    path = get_settings().config_file
    tree = load_config_tree(path)
    LOGGER.info('loaded config tree path=%s scopes=%d', path, len(tree))
    return tree


@lru_cache(maxsize=1)
def _abi_documents() -> dict[str, list[Any]]:
    artifacts_dir = get_settings().artifacts_path
    documents = load_abis(artifacts_dir)
    LOGGER.info('loaded abis dir=%s names=%s', artifacts_dir, ','.join(sorted(documents)))
    return documents


@lru_cache(maxsize=1)
def get_resolver() -> ConfigResolver:
    return ConfigResolver(_config_tree())


@lru_cache(maxsize=1)
def get_abi_registry() -> AbiRegistryBuilder:
    return AbiRegistryBuilder(_config_tree(), _abi_documents())


def reset_caches() -> None:
    _config_tree.cache_clear()
    _abi_documents.cache_clear()
    get_resolver.cache_clear()
    get_abi_registry.cache_clear()


def config(chain_id: Any, dex_name: str | None = None) -> dict[str, Any] | None:
    return get_resolver().resolve(chain_id, dex_name)


def abis() -> dict[str, list[Any]]:
    return dict(_abi_documents())


def build_registry() -> AbiRegistry:
    return get_abi_registry().build()
