"""CDNアップローダーの例外定義"""
from typing import Iterable


class CdnUploaderError(Exception):
    """全例外の基底クラス"""


class ConfigurationError(CdnUploaderError, ValueError):
    """設定に関するエラー"""


class MissingConfigurationError(ConfigurationError):
    """必須設定が空のまま残っている"""

    def __init__(self, missing: Iterable[str]):
        self.missing = list(missing)
        super().__init__(f"Missing Configurations: {', '.join(self.missing)}")


class InvalidConfigurationError(ConfigurationError):
    """設定値が不正"""


class StorageConnectionError(CdnUploaderError, ConnectionError):
    """ストレージへの接続に失敗"""


class UploadItemError(CdnUploaderError):
    """単一ファイルのアップロード失敗"""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Error uploading {path}: {reason}")


class FlushError(CdnUploaderError):
    """バッチ全体の実行に失敗"""


class UploadCancelledError(CdnUploaderError):
    """キャンセルにより未実行のまま破棄されたリクエスト"""


class AssetDiscoveryError(CdnUploaderError, ValueError):
    """アップロード対象の探索に失敗"""
