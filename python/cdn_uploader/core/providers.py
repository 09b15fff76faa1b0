"""ストレージプロバイダーの実装

どのプロバイダーも open() と put_object() の2つだけを実装すれば
BatchUploader から利用できる。
"""
from typing import Any, BinaryIO, Callable, Dict, Optional, Protocol, runtime_checkable
from urllib.parse import quote

import boto3
from boto3.s3.transfer import TransferConfig as BotoTransferConfig

from ..models.config import TransferOptions, UploadSettings
from ..utils.logger import LoggerManager


@runtime_checkable
class StorageClient(Protocol):
    """ストレージバックエンドに要求する最小限の機能"""

    def open(self, key: str, secret: str) -> None:
        """認証済みセッションを開く"""
        ...

    def put_object(self, bucket: str, key: str, body: BinaryIO, access_policy: str) -> str:
        """オブジェクトを書き込み、そのURLを返す"""
        ...


class _BaseStorageClient:
    name = "base"

    def __init__(self, settings: UploadSettings):
        self.settings = settings
        self.logger = LoggerManager.get_logger()
        self._client: Any = None

    def _require_client(self) -> Any:
        if self._client is None:
            raise RuntimeError(f"{self.name} session is not open. Call open() first.")
        return self._client


class S3StorageClient(_BaseStorageClient):
    """boto3 を使った S3 互換ストレージ"""
    name = "s3"

    def __init__(self, settings: UploadSettings):
        super().__init__(settings)
        self.transfer_config = self.create_transfer_config(settings.transfer)

    @staticmethod
    def create_transfer_config(options: TransferOptions) -> BotoTransferConfig:
        """TransferOptionsからTransferConfigを作成"""
        return BotoTransferConfig(
            multipart_threshold=options.multipart_threshold,
            max_concurrency=options.max_concurrency,
            multipart_chunksize=options.multipart_chunksize,
            use_threads=options.use_threads,
            max_io_queue=options.max_io_queue,
            io_chunksize=options.io_chunksize,
        )

    def open(self, key: str, secret: str) -> None:
        client = boto3.client(
            's3',
            aws_access_key_id=key,
            aws_secret_access_key=secret,
            region_name=self.settings.region,
            endpoint_url=self.settings.endpoint_url,
        )
        if self.settings.verify:
            # 認証情報の拒否や到達不能をここで検出する
            client.head_bucket(Bucket=self.settings.default_bucket)
        self._client = client
        self.logger.info("S3 client created with configured credentials.")

    def put_object(self, bucket: str, key: str, body: BinaryIO, access_policy: str) -> str:
        client = self._require_client()
        client.upload_fileobj(
            body,
            bucket,
            key,
            ExtraArgs={"ACL": access_policy},
            Config=self.transfer_config,
        )
        return self.object_url(bucket, key)

    def object_url(self, bucket: str, key: str) -> str:
        endpoint = self._require_client().meta.endpoint_url.rstrip("/")
        return f"{endpoint}/{bucket}/{quote(key)}"


class GcsStorageClient(_BaseStorageClient):
    """google-cloud-storage を使った GCS

    key はプロジェクトID、secret はサービスアカウントJSONのパス。
    """
    name = "gcs"

    # S3形式のACL名 -> GCSの predefined ACL
    ACL_MAP = {
        "private": "private",
        "public-read": "publicRead",
        "authenticated-read": "authenticatedRead",
        "bucket-owner-read": "bucketOwnerRead",
        "bucket-owner-full-control": "bucketOwnerFullControl",
        "project-private": "projectPrivate",
    }

    def open(self, key: str, secret: str) -> None:
        from google.cloud import storage

        client = storage.Client.from_service_account_json(secret, project=key)
        if self.settings.verify:
            client.get_bucket(self.settings.default_bucket)
        self._client = client
        self.logger.info("GCS client created with service account credentials.")

    def put_object(self, bucket: str, key: str, body: BinaryIO, access_policy: str) -> str:
        blob = self._require_client().bucket(bucket).blob(key)
        blob.upload_from_file(
            body,
            predefined_acl=self.ACL_MAP.get(access_policy, access_policy),
        )
        return blob.public_url


class AzureStorageClient(_BaseStorageClient):
    """azure-storage-blob を使った Azure Blob Storage

    key はストレージアカウント名、secret はアカウントキー。
    バケットはコンテナとして扱う。
    """
    name = "azure"

    def open(self, key: str, secret: str) -> None:
        from azure.storage.blob import BlobServiceClient

        account_url = self.settings.endpoint_url or f"https://{key}.blob.core.windows.net"
        client = BlobServiceClient(account_url=account_url, credential=secret)
        if self.settings.verify:
            client.get_container_client(self.settings.default_bucket).get_container_properties()
        self._client = client
        self.logger.info(f"Azure blob client created for {account_url}.")

    def put_object(self, bucket: str, key: str, body: BinaryIO, access_policy: str) -> str:
        # アクセスレベルはコンテナ単位で決まるため access_policy は使わない
        blob_client = self._require_client().get_blob_client(container=bucket, blob=key)
        blob_client.upload_blob(body, overwrite=True)
        return blob_client.url


PROVIDER_CLASSES: Dict[str, Callable[[UploadSettings], StorageClient]] = {
    "s3": S3StorageClient,
    "gcs": GcsStorageClient,
    "azure": AzureStorageClient,
}


def create_storage_client(
    settings: UploadSettings,
    registry: Optional[Dict[str, Callable[[UploadSettings], StorageClient]]] = None,
) -> StorageClient:
    """設定の provider に対応するクライアントを作成（未接続）"""
    registry = registry or PROVIDER_CLASSES
    try:
        factory = registry[settings.provider]
    except KeyError:
        raise ValueError(f"Unsupported storage provider: {settings.provider}")
    return factory(settings)
