#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from apps.config_api.abi_registry import AbiRegistryBuilder
from apps.config_api.config import configure_logging, get_settings
from apps.config_api.layered_config import ConfigResolver, ConfigTreeError
from apps.config_api.loaders import AbiArtifactError, load_abis, load_config_tree

LOGGER = logging.getLogger('spot.resolve_config')


def _parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(description='Print the effective spot config for a chain / dex')
    parser.add_argument('chain_id', help='Chain id, e.g. 137')
    parser.add_argument('dex', nargs='?', default=None, help='Dex integration name; omit for chain defaults')
    parser.add_argument('--config', type=Path, default=settings.config_file, help='Layered config JSON')
    parser.add_argument('--registry', action='store_true', help='Print the ABI bundle instead of the config')
    parser.add_argument('--artifacts', type=Path, default=settings.artifacts_path, help='Forge build output dir')
    return parser


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    args = _parser().parse_args(argv)

    try:
        tree = load_config_tree(args.config)
        if args.registry:
            builder = AbiRegistryBuilder(tree, load_abis(args.artifacts))
            result = builder.documents_for(args.chain_id, args.dex)
        else:
            result = ConfigResolver(tree).resolve(args.chain_id, args.dex)
    except (ConfigTreeError, AbiArtifactError) as exc:
        print(f'error: {exc}', file=sys.stderr)
        return 2

    if result is None:
        target = args.chain_id if args.dex is None else f'{args.chain_id}/{args.dex}'
        print(f'not found: {target}', file=sys.stderr)
        return 1

    LOGGER.info('resolved chain_id=%s dex=%s keys=%d', args.chain_id, args.dex, len(result))
    print(json.dumps(result, indent=2, sort_keys=True))
    return 0


if __name__ == '__main__':
    sys.exit(main())
