"""アセットのバッチアップロード実行"""
import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, BinaryIO, Callable, Dict, Iterable, List, Optional

from ..exceptions import FlushError, UploadCancelledError, UploadItemError
from ..models.config import UploadSettings
from ..utils.file_utils import Asset
from ..utils.logger import LoggerManager
from ..utils.progress import EventKind, LoggingReporter, Reporter
from .providers import StorageClient
from .url import compose_url


@dataclass
class UploadResult:
    """アップロード結果"""
    asset: Asset
    success: bool
    object_url: Optional[str] = None
    error: Optional[str] = None

    @property
    def path(self) -> str:
        return self.asset.path


@dataclass
class PutRequest:
    """未実行の PutObject リクエスト

    本体のストリームは実行直前に開くので、バッチが大きくても
    同時に開くファイル数はワーカー数までに収まる。
    """
    asset: Asset
    bucket: str
    key: str
    access_policy: str

    def open_body(self) -> BinaryIO:
        return self.asset.open()


class UploadBatch:
    """上限件数に達すると自動でフラッシュされるリクエストのバッチ"""

    def __init__(self, capacity: int, executor: Callable[[List[PutRequest]], List[UploadResult]]):
        if capacity < 1:
            raise ValueError(f"Batch capacity must be positive, got {capacity}")
        self.capacity = capacity
        self.executor = executor
        self.pending: List[PutRequest] = []
        self.flush_count = 0

    def __len__(self) -> int:
        return len(self.pending)

    def add(self, request: PutRequest) -> List[UploadResult]:
        """リクエストを追加。上限に達したらフラッシュしてその結果を返す"""
        self.pending.append(request)
        if len(self.pending) >= self.capacity:
            return self.flush()
        return []

    def flush(self) -> List[UploadResult]:
        """溜まっているリクエストを実行して空にする"""
        if not self.pending:
            return []
        requests, self.pending = self.pending, []
        self.flush_count += 1
        return self.executor(requests)

    def discard(self) -> List[PutRequest]:
        """実行せずに取り出して空にする"""
        requests, self.pending = self.pending, []
        return requests


class BatchUploader:
    """アセット列を threshold 件ずつのバッチでアップロードする

    1ファイルの失敗は結果として記録するだけで、全体は止めない。
    """

    def __init__(
        self,
        settings: UploadSettings,
        client: StorageClient,
        reporter: Optional[Reporter] = None,
    ):
        self.settings = settings
        self.client = client
        self.reporter = reporter or LoggingReporter()
        self.logger = LoggerManager.get_logger()
        # TODO: バケットごとの振り分けに対応したら default_bucket 固定をやめる
        self.bucket = settings.default_bucket
        self.flushed_batches: List[List[str]] = []

    def upload(
        self,
        assets: Iterable[Asset],
        cancel_event: Optional[threading.Event] = None,
    ) -> List[UploadResult]:
        """全アセットをアップロードし、アセットごとの結果を返す"""
        assets = list(assets)
        self.flushed_batches = []
        self._notify(EventKind.STARTED, {
            "total": len(assets),
            "bucket": self.bucket,
            "threshold": self.settings.threshold,
        })

        results: List[UploadResult] = []
        batch = UploadBatch(self.settings.threshold, self._execute_batch)

        for index, asset in enumerate(assets):
            if cancel_event is not None and cancel_event.is_set():
                results.extend(self._cancel(batch.discard(), assets[index:]))
                break

            try:
                request = self._build_request(asset)
            except Exception as e:
                results.append(self._failure(asset, UploadItemError(asset.path, str(e))))
                continue

            results.extend(batch.add(request))
        else:
            # 残りの端数を最後に一度だけフラッシュ
            results.extend(batch.flush())

        successful = sum(1 for result in results if result.success)
        self._notify(EventKind.COMPLETED, {
            "total": len(results),
            "uploaded": successful,
            "failed": len(results) - successful,
        })
        return results

    def _build_request(self, asset: Asset) -> PutRequest:
        # ここではファイルを開かず、存在と読み取り権限だけ確認する
        if not os.path.isfile(asset.local_path):
            raise FileNotFoundError(f"File not found: {asset.local_path}")
        if not os.access(asset.local_path, os.R_OK):
            raise PermissionError(f"Permission denied for file: {asset.local_path}")

        return PutRequest(
            asset=asset,
            bucket=self.bucket,
            key=asset.path,
            access_policy=self.settings.access_policy,
        )

    def _execute_batch(self, requests: List[PutRequest]) -> List[UploadResult]:
        """バッチ内のリクエストを並列実行（結果は投入順）"""
        self.flushed_batches.append([request.key for request in requests])
        workers = min(len(requests), self.settings.threshold, self.settings.transfer.workers)
        self.logger.debug(f"Flushing batch of {len(requests)} request(s) with {workers} worker(s)")

        futures: List[Future] = []
        flush_error: Optional[FlushError] = None
        try:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                for request in requests:
                    futures.append(pool.submit(self._put, request))
        except Exception as e:
            flush_error = FlushError(
                f"Batch of {len(requests)} request(s) failed after submitting {len(futures)}: {e}"
            )
            self.logger.error(str(flush_error))

        results = []
        # 投入済みのリクエストは実際の結果を記録する
        for request, future in zip(requests, futures):
            try:
                object_url = future.result()
            except Exception as e:
                results.append(self._failure(request.asset, UploadItemError(request.key, str(e))))
            else:
                results.append(self._success(request, object_url))

        for request in requests[len(futures):]:
            results.append(self._failure(request.asset, flush_error))
        return results

    def _put(self, request: PutRequest) -> str:
        if self.settings.dry_run:
            self.logger.info(
                f"[DRY RUN]: Would upload {request.asset.local_path} to {request.bucket}/{request.key}"
            )
            return compose_url(self.settings, request.bucket, request.key)

        with request.open_body() as body:
            return self.client.put_object(
                request.bucket, request.key, body, request.access_policy
            )

    def _cancel(self, pending: List[PutRequest], remaining: List[Asset]) -> List[UploadResult]:
        self.logger.warning(
            f"Upload cancelled: {len(pending)} pending and {len(remaining)} remaining asset(s) skipped"
        )
        error = UploadCancelledError("Upload cancelled before the request was sent")
        return [self._failure(asset, error) for asset in [r.asset for r in pending] + remaining]

    def _success(self, request: PutRequest, object_url: str) -> UploadResult:
        self.logger.info(
            f"Successfully uploaded {request.asset.local_path} to {request.bucket}/{request.key}"
        )
        self._notify(EventKind.ITEM_UPLOADED, {"path": request.key, "url": object_url})
        return UploadResult(request.asset, success=True, object_url=object_url)

    def _failure(self, asset: Asset, error: Exception) -> UploadResult:
        self.logger.error(f"Upload failed for {asset.path}: {error}")
        self._notify(EventKind.ITEM_FAILED, {"path": asset.path, "error": str(error)})
        return UploadResult(asset, success=False, error=str(error))

    def _notify(self, event_kind: EventKind, payload: Dict[str, Any]) -> None:
        try:
            self.reporter.notify(event_kind, payload)
        except Exception as e:
            self.logger.warning(f"Reporter failed on {event_kind.value} event: {e}")
