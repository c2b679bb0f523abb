import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from fastapi.testclient import TestClient

from apps.config_api.config import get_settings
from apps.config_api.main import app
from apps.config_api.service import abis, build_registry, config, reset_caches
from apps.config_api.tests.test_loaders import write_artifacts

TREE = {
    '*': {'slippage_bps': 50, 'gas': {'limit': 500000}, 'dex': {'ignored': {'x': 1}}},
    '137': {
        'rpc': 'https://polygon-rpc.com',
        'dex': {'quickswap': {'slippage_bps': 30, 'gas': {'buffer_pct': 10}}}
    },
    '56': {'rpc': 'https://bsc-dataseed.binance.org'}
}


class ConfigApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        root = Path(self._tmp.name)
        config_path = root / 'config.json'
        config_path.write_text(json.dumps(TREE), encoding='utf-8')
        write_artifacts(root / 'out')

        self._env = patch.dict(
            'os.environ',
            {'SPOT_CONFIG_PATH': str(config_path), 'SPOT_ARTIFACTS_DIR': str(root / 'out')},
            clear=False
        )
        self._env.start()
        get_settings.cache_clear()
        reset_caches()
        self.client = TestClient(app)

    def tearDown(self) -> None:
        self._env.stop()
        get_settings.cache_clear()
        reset_caches()
        self._tmp.cleanup()

    def test_health(self) -> None:
        self.assertEqual(self.client.get('/health').json(), {'status': 'ok'})

    def test_chains(self) -> None:
        payload = self.client.get('/chains').json()
        self.assertEqual(
            payload['chains'],
            [{'chain_id': '137', 'dex': ['quickswap']}, {'chain_id': '56', 'dex': []}]
        )

    def test_chain_config(self) -> None:
        response = self.client.get('/config/56')
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body['chain_id'], '56')
        self.assertIsNone(body['dex'])
        self.assertEqual(
            body['effective_config'],
            {'slippage_bps': 50, 'gas': {'limit': 500000}, 'rpc': 'https://bsc-dataseed.binance.org'}
        )

    def test_dex_config(self) -> None:
        body = self.client.get('/config/137/quickswap').json()
        self.assertEqual(body['dex'], 'quickswap')
        self.assertEqual(body['effective_config']['slippage_bps'], 30)
        self.assertEqual(body['effective_config']['gas'], {'limit': 500000, 'buffer_pct': 10})
        self.assertNotIn('dex', body['effective_config'])

    def test_not_found_maps_to_404(self) -> None:
        self.assertEqual(self.client.get('/config/999').status_code, 404)
        self.assertEqual(self.client.get('/config/137/uniswap').status_code, 404)
        self.assertEqual(self.client.get('/config/56/quickswap').status_code, 404)
        self.assertEqual(self.client.get('/registry/56/quickswap').status_code, 404)

    def test_registry(self) -> None:
        registry = self.client.get('/registry').json()
        self.assertEqual(set(registry), {'137'})
        self.assertEqual(set(registry['137']['quickswap']), {'wm', 'repermit', 'reactor', 'executor', 'refinery', 'adapter'})

        entry = self.client.get('/registry/137/quickswap').json()
        self.assertEqual(entry['executor'][0]['name'], 'executor')

    def test_abis(self) -> None:
        payload = self.client.get('/abis').json()
        self.assertEqual(payload['refinery'], [{'type': 'function', 'name': 'refinery'}])

    def test_missing_config_file_maps_to_503(self) -> None:
        with patch.dict('os.environ', {'SPOT_CONFIG_PATH': str(Path(self._tmp.name) / 'nope.json')}):
            get_settings.cache_clear()
            reset_caches()
            self.assertEqual(self.client.get('/config/137').status_code, 503)

    def test_missing_artifacts_map_to_503_without_touching_config(self) -> None:
        with patch.dict('os.environ', {'SPOT_ARTIFACTS_DIR': str(Path(self._tmp.name) / 'missing-out')}):
            get_settings.cache_clear()
            reset_caches()
            self.assertEqual(self.client.get('/abis').status_code, 503)
            self.assertEqual(self.client.get('/config/137/quickswap').status_code, 200)

    def test_module_entry_points(self) -> None:
        self.assertEqual(config(137, 'quickswap')['slippage_bps'], 30)
        self.assertIsNone(config(137, '  '))
        self.assertEqual(set(abis()), {'wm', 'repermit', 'reactor', 'executor', 'refinery', 'adapter'})

        registry = build_registry()
        documents = abis()
        self.assertIs(registry['137']['quickswap']['wm'], documents['wm'])


if __name__ == '__main__':
    unittest.main()
