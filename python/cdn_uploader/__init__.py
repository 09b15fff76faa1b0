"""CDN Uploader パッケージ"""
import threading
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple
from .exceptions import (
    CdnUploaderError,
    ConfigurationError,
    MissingConfigurationError,
    InvalidConfigurationError,
    StorageConnectionError,
    UploadItemError,
    FlushError,
    AssetDiscoveryError,
)
from .models.config import Config, UploadSettings, resolve
from .utils.file_utils import Asset
from .utils.logger import LoggerManager
from .utils.progress import EventKind, Reporter
from .core.providers import StorageClient, create_storage_client
from .core.task_runner import TaskRunner
from .core.uploader import UploadResult
from .core.url import compose_url


class CdnUploader:
    """CDNアップローダーのメインクラス"""

    def __init__(
        self,
        config_path: str = "config.json",
        reporter: Optional[Reporter] = None,
        config: Optional[Config] = None,
        client_factory: Callable[[UploadSettings], StorageClient] = create_storage_client,
    ):
        # 設定を読み込み
        self.config = config or Config.from_file(config_path)

        # ロガーをセットアップ
        self.logger = LoggerManager.setup(self.config.logging)
        self.logger.info("CDN Uploader initialized")

        self.task_runner = TaskRunner(self.config, reporter, client_factory)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], **kwargs) -> 'CdnUploader':
        return cls(config=Config.from_dict(data), **kwargs)

    @property
    def settings(self) -> UploadSettings:
        return self.config.settings

    @property
    def url(self) -> str:
        return self.settings.url

    def upload(
        self,
        assets: Optional[Sequence[Asset]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[UploadResult]:
        """アセットをアップロードして結果の一覧を返す"""
        self.logger.info("Starting CDN upload process...")
        return self.task_runner.run(assets, cancel_event)

    def run(self) -> Tuple[int, int]:
        """設定されたアセットをアップロードして (成功数, 失敗数) を返す"""
        results = self.upload()
        successful = sum(1 for result in results if result.success)
        return successful, len(results) - successful

    def asset_url(self, path: str) -> str:
        """アセットの公開URL（最初のバケットを使用）"""
        return compose_url(self.settings, self.settings.default_bucket, path)


__all__ = [
    'CdnUploader',
    'Config',
    'UploadSettings',
    'resolve',
    'Asset',
    'UploadResult',
    'EventKind',
    'Reporter',
    'compose_url',
    'CdnUploaderError',
    'ConfigurationError',
    'MissingConfigurationError',
    'InvalidConfigurationError',
    'StorageConnectionError',
    'UploadItemError',
    'FlushError',
    'AssetDiscoveryError',
]
