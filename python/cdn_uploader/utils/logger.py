"""ロギング設定ユーティリティ"""
import logging
import os
from typing import Optional, List
from ..models.config import LoggingConfig


LOGGER_NAME = "cdn_uploader"

# ストレージSDKのロガー。DEBUG にするとリクエスト全体が出力されるため別レベルで管理する
LIBRARY_LOGGERS = (
    "boto3",
    "botocore",
    "s3transfer",
    "urllib3",
    "google.cloud.storage",
    "azure.storage.blob",
    "azure.core.pipeline.policies.http_logging_policy",
)


def _level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)


class LoggerManager:
    """ロガーの設定と管理"""

    _logger: Optional[logging.Logger] = None

    @classmethod
    def setup(cls, config: LoggingConfig) -> logging.Logger:
        """アップローダーとストレージSDKのロガーをセットアップ"""
        if cls._logger is not None:
            return cls._logger

        logger = logging.getLogger(LOGGER_NAME)
        logger.setLevel(_level(config.level))
        logger.handlers = cls._build_handlers(config)

        library_level = _level(config.library_level)
        for name in LIBRARY_LOGGERS:
            logging.getLogger(name).setLevel(library_level)

        cls._logger = logger
        return logger

    @staticmethod
    def _build_handlers(config: LoggingConfig) -> List[logging.Handler]:
        formatter = logging.Formatter(config.format, datefmt="%Y-%m-%d %H:%M:%S")
        handlers: List[logging.Handler] = [logging.StreamHandler()]

        # アップロード結果を残すファイル（設定されている場合）
        if config.file:
            log_dir = os.path.dirname(config.file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            handlers.append(logging.FileHandler(config.file, encoding="utf-8"))

        for handler in handlers:
            handler.setFormatter(formatter)
        return handlers

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """ロガーを取得（未セットアップ時はハンドラーなしの名前付きロガー）"""
        if cls._logger is None:
            return logging.getLogger(LOGGER_NAME)
        return cls._logger

    @classmethod
    def reset(cls) -> None:
        """セットアップ済みのハンドラーを閉じて初期状態に戻す"""
        if cls._logger is not None:
            for handler in cls._logger.handlers:
                handler.close()
            cls._logger.handlers = []
        cls._logger = None
