"""アップロード処理の実行"""
import threading
from typing import Callable, List, Optional, Sequence

from ..models.config import Config, UploadSettings
from ..utils.logger import LoggerManager
from ..utils.file_utils import Asset, FileScanner
from ..utils.progress import LoggingReporter, Reporter
from .connection import StorageConnection
from .providers import StorageClient, create_storage_client
from .uploader import BatchUploader, UploadResult


class TaskRunner:
    """設定 → 接続 → アップロード の順に処理を実行"""

    def __init__(
        self,
        config: Config,
        reporter: Optional[Reporter] = None,
        client_factory: Callable[[UploadSettings], StorageClient] = create_storage_client,
    ):
        self.config = config
        self.logger = LoggerManager.get_logger()
        self.reporter = reporter or LoggingReporter()

        # 接続は最初のアップロード時まで開かない
        self.connection = StorageConnection(config.settings, client_factory)
        self.file_scanner = FileScanner(config.assets)

    def discover(self) -> List[Asset]:
        """設定されたディレクトリからアセットを収集"""
        assets = self.file_scanner.scan()
        self.logger.info(
            f"Found {len(assets)} asset(s) in {len(self.config.assets.directories)} directories"
        )
        return assets

    def run(
        self,
        assets: Optional[Sequence[Asset]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[UploadResult]:
        """アセットをアップロード。assets 省略時は設定から探索する"""
        if assets is None:
            assets = self.discover()

        if not assets:
            self.logger.warning("No assets to upload")
            return []

        client = self.connection.connect()
        uploader = BatchUploader(self.config.settings, client, self.reporter)
        results = uploader.upload(assets, cancel_event)

        failed = sum(1 for result in results if not result.success)
        self.logger.info(
            f"Upload run finished: {len(results) - failed} successful, {failed} failed "
            f"in {len(uploader.flushed_batches)} batch(es)"
        )
        return results
