from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from prometheus_client import Counter, make_asgi_app
from pydantic import BaseModel

from .abi_registry import AbiRegistryBuilder
from .config import configure_logging, get_settings
from .layered_config import ConfigResolver, ConfigTreeError
from .loaders import AbiArtifactError
from .service import abis, get_abi_registry, get_resolver

settings = get_settings()
configure_logging(settings)
logger = logging.getLogger(__name__)

LOOKUPS_TOTAL = Counter(
    'spot_config_lookups_total',
    'Configuration and ABI registry lookups',
    ['kind', 'outcome']
)

app = FastAPI(title=settings.app_name, default_response_class=ORJSONResponse)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[x.strip() for x in settings.cors_origins.split(',') if x.strip()],
    allow_credentials=True,
    allow_methods=['GET'],
    allow_headers=['*']
)
app.mount('/metrics', make_asgi_app())


class ResolvedConfig(BaseModel):
    chain_id: str
    dex: str | None = None
    effective_config: dict[str, Any]


def _resolver() -> ConfigResolver:
    try:
        return get_resolver()
    except ConfigTreeError as exc:
        logger.error('config tree unavailable: %s', exc)
        raise HTTPException(status_code=503, detail=str(exc)) from exc


def _registry() -> AbiRegistryBuilder:
    try:
        return get_abi_registry()
    except (ConfigTreeError, AbiArtifactError) as exc:
        logger.error('abi registry unavailable: %s', exc)
        raise HTTPException(status_code=503, detail=str(exc)) from exc


def _found(kind: str, value: Any, detail: str) -> Any:
    if value is None:
        LOOKUPS_TOTAL.labels(kind=kind, outcome='not_found').inc()
        raise HTTPException(status_code=404, detail=detail)
    LOOKUPS_TOTAL.labels(kind=kind, outcome='found').inc()
    return value


@app.get('/health')
async def health() -> dict[str, str]:
    return {'status': 'ok'}


@app.get('/chains')
async def chains() -> dict:
    resolver = _resolver()
    return {
        'chains': [
            {'chain_id': chain_id, 'dex': resolver.dex_names(chain_id)}
            for chain_id in resolver.chain_ids()
        ]
    }


@app.get('/config/{chain_id}', response_model=ResolvedConfig)
async def chain_config(chain_id: str) -> ResolvedConfig:
    resolved = _found(
        'chain',
        _resolver().resolve(chain_id),
        f'chain_id={chain_id} not configured'
    )
    return ResolvedConfig(chain_id=chain_id.strip(), effective_config=resolved)


@app.get('/config/{chain_id}/{dex_name}', response_model=ResolvedConfig)
async def dex_config(chain_id: str, dex_name: str) -> ResolvedConfig:
    resolved = _found(
        'dex',
        _resolver().resolve(chain_id, dex_name),
        f'dex={dex_name} not configured for chain_id={chain_id}'
    )
    return ResolvedConfig(chain_id=chain_id.strip(), dex=dex_name.strip(), effective_config=resolved)


@app.get('/abis')
async def named_abis() -> dict:
    try:
        return abis()
    except AbiArtifactError as exc:
        logger.error('abi documents unavailable: %s', exc)
        raise HTTPException(status_code=503, detail=str(exc)) from exc


@app.get('/registry')
async def registry() -> dict:
    return _registry().build()


@app.get('/registry/{chain_id}/{dex_name}')
async def registry_entry(chain_id: str, dex_name: str) -> dict:
    return _found(
        'abi',
        _registry().documents_for(chain_id, dex_name),
        f'no abi bundle for chain_id={chain_id} dex={dex_name}'
    )
