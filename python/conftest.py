"""テスト共通のフィクスチャ"""
import threading

import pytest

from cdn_uploader.models.config import resolve
from cdn_uploader.utils.file_utils import Asset
from cdn_uploader.utils.logger import LoggerManager


class FakeStorageClient:
    """呼び出しを記録するだけのストレージクライアント"""

    def __init__(self, settings=None, fail_keys=(), open_error=None):
        self.settings = settings
        self.fail_keys = set(fail_keys)
        self.open_error = open_error
        self.open_calls = []
        self.calls = []
        self.bodies = []
        self.lock = threading.Lock()

    def open(self, key, secret):
        self.open_calls.append((key, secret))
        if self.open_error is not None:
            raise self.open_error

    def put_object(self, bucket, key, body, access_policy):
        data = body.read()
        with self.lock:
            self.calls.append((bucket, key, data, access_policy))
            self.bodies.append(body)
        if key in self.fail_keys:
            raise RuntimeError(f"AccessDenied: {key}")
        return f"https://{bucket}.storage.test/{key}"

    @property
    def keys(self):
        return [call[1] for call in self.calls]


@pytest.fixture(autouse=True)
def reset_logger():
    LoggerManager.reset()
    yield
    LoggerManager.reset()


@pytest.fixture
def base_config():
    return {
        "protocol": "https",
        "domain": "cdn.example.com",
        "threshold": 2,
        "credentials": {"key": "AKIAEXAMPLE", "secret": "s3cr3t"},
        "buckets": {"first-bucket": {}, "second-bucket": {}},
        "acl": "public-read",
    }


@pytest.fixture
def make_settings(base_config):
    def _make(**overrides):
        return resolve({**base_config, **overrides})
    return _make


@pytest.fixture
def make_assets(tmp_path):
    """名前ごとに小さなファイルを作ってアセットにする"""
    def _make(*names):
        assets = []
        for name in names:
            local = tmp_path / name
            local.parent.mkdir(parents=True, exist_ok=True)
            local.write_bytes(f"content of {name}".encode("utf-8"))
            assets.append(Asset(path=name, local_path=str(local)))
        return assets
    return _make
