from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .abi_registry import ABI_ARTIFACTS
from .layered_config import ConfigTreeError


class AbiArtifactError(Exception):
    def __init__(self, path: Path, detail: str) -> None:
        super().__init__(f'{path}: {detail}')
        self.path = path
        self.detail = detail


def load_config_tree(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigTreeError(f'config file not found: {path}')
    try:
        payload = json.loads(path.read_text(encoding='utf-8'))
    except json.JSONDecodeError as exc:
        raise ConfigTreeError(f'invalid JSON in {path}: {exc}') from exc
    if not isinstance(payload, dict):
        raise ConfigTreeError(f'config file {path} must contain a JSON object')
    return payload


def artifact_path(artifacts_dir: Path, contract_name: str) -> Path:
    # forge layout: out/<Contract>.sol/<Contract>.json
    return artifacts_dir / f'{contract_name}.sol' / f'{contract_name}.json'


def load_abi(artifacts_dir: Path, contract_name: str) -> list[Any]:
    path = artifact_path(artifacts_dir, contract_name)
    if not path.exists():
        raise AbiArtifactError(path, 'artifact not found')
    try:
        payload = json.loads(path.read_text(encoding='utf-8'))
    except json.JSONDecodeError as exc:
        raise AbiArtifactError(path, f'invalid JSON: {exc}') from exc
    abi = payload.get('abi') if isinstance(payload, dict) else None
    if not isinstance(abi, list):
        raise AbiArtifactError(path, "missing 'abi' list")
    return abi


def load_abis(artifacts_dir: Path) -> dict[str, list[Any]]:
    return {name: load_abi(artifacts_dir, contract) for name, contract in ABI_ARTIFACTS.items()}
