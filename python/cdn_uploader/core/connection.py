"""ストレージ接続の管理"""
from typing import Callable, Optional

from ..exceptions import StorageConnectionError
from ..models.config import UploadSettings
from ..utils.logger import LoggerManager
from .providers import StorageClient, create_storage_client


class StorageConnection:
    """ストレージクライアントの作成と管理

    セッションは最初の connect() で一度だけ開き、以降は同じハンドルを返す。
    """

    def __init__(
        self,
        settings: UploadSettings,
        client_factory: Callable[[UploadSettings], StorageClient] = create_storage_client,
    ):
        self.settings = settings
        self.client_factory = client_factory
        self.logger = LoggerManager.get_logger()
        self._client: Optional[StorageClient] = None

    @property
    def connected(self) -> bool:
        return self._client is not None

    def connect(self) -> StorageClient:
        """クライアントを取得（必要に応じて作成）"""
        if self._client is None:
            self._client = self._open()
        return self._client

    def close(self) -> None:
        """ハンドルを破棄する。次の connect() で新しいセッションを開く"""
        self._client = None

    def _open(self) -> StorageClient:
        provider = self.settings.provider
        credentials = self.settings.credentials

        try:
            client = self.client_factory(self.settings)
            client.open(credentials.key, credentials.secret)
        except Exception as e:
            self.logger.error(f"Error connecting to {provider} storage: {e}")
            raise StorageConnectionError(
                f"Could not connect to {provider} storage: {e}"
            ) from e

        self.logger.info(
            f"Connected to {provider} storage (bucket: {self.settings.default_bucket})"
        )
        return client
