"""CDN Uploader コアモジュール"""
from .connection import StorageConnection
from .providers import StorageClient, S3StorageClient, GcsStorageClient, AzureStorageClient
from .uploader import BatchUploader, UploadBatch, UploadResult
from .task_runner import TaskRunner
from .url import compose_url

__all__ = [
    'StorageConnection',
    'StorageClient',
    'S3StorageClient',
    'GcsStorageClient',
    'AzureStorageClient',
    'BatchUploader',
    'UploadBatch',
    'UploadResult',
    'TaskRunner',
    'compose_url'
]
