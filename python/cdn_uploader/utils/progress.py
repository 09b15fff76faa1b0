"""アップロード進捗の通知"""
import threading
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, TextIO, Tuple
import sys

from .logger import LoggerManager


class EventKind(str, Enum):
    """通知イベントの種類"""
    STARTED = "started"
    ITEM_UPLOADED = "itemUploaded"
    ITEM_FAILED = "itemFailed"
    COMPLETED = "completed"


class Reporter(Protocol):
    """進捗を受け取る側のインターフェース"""

    def notify(self, event_kind: EventKind, payload: Dict[str, Any]) -> None:
        ...


class LoggingReporter:
    """ロガーに進捗を出力"""

    def __init__(self):
        self.logger = LoggerManager.get_logger()

    def notify(self, event_kind: EventKind, payload: Dict[str, Any]) -> None:
        if event_kind is EventKind.STARTED:
            self.logger.info(
                f"Uploading in progress... (bucket: {payload.get('bucket')}, "
                f"threshold: {payload.get('threshold')})"
            )
        elif event_kind is EventKind.ITEM_UPLOADED:
            self.logger.info(f"uploaded: {payload.get('url')}")
        elif event_kind is EventKind.ITEM_FAILED:
            self.logger.error(f"failed: {payload.get('path')} - {payload.get('error')}")
        elif event_kind is EventKind.COMPLETED:
            self.logger.info(
                f"Upload completed: {payload.get('uploaded', 0)} uploaded, "
                f"{payload.get('failed', 0)} failed"
            )


class ConsoleReporter:
    """端末に進捗を表示"""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdout
        self.lock = threading.Lock()
        self.uploaded = 0
        self.total: Optional[int] = None

    def notify(self, event_kind: EventKind, payload: Dict[str, Any]) -> None:
        with self.lock:
            if event_kind is EventKind.STARTED:
                self.total = payload.get("total")
                self._write("Uploading in progress...")
            elif event_kind is EventKind.ITEM_UPLOADED:
                self.uploaded += 1
                counter = f"[{self.uploaded}/{self.total}] " if self.total else ""
                self._write(f"{counter}URL: {payload.get('url')}")
            elif event_kind is EventKind.ITEM_FAILED:
                self._write(f"There was an error uploading {payload.get('path')}: {payload.get('error')}")
            elif event_kind is EventKind.COMPLETED:
                if payload.get("failed"):
                    self._write(
                        f"Upload finished with {payload['failed']} failure(s), "
                        f"{payload.get('uploaded', 0)} uploaded."
                    )
                else:
                    self._write("Upload completed successfully.")

    def _write(self, message: str) -> None:
        print(message, file=self.stream, flush=True)


class RecordingReporter:
    """受け取ったイベントを記録する（組み込み・テスト用）"""

    def __init__(self):
        self.events: List[Tuple[EventKind, Dict[str, Any]]] = []
        self.lock = threading.Lock()

    def notify(self, event_kind: EventKind, payload: Dict[str, Any]) -> None:
        with self.lock:
            self.events.append((event_kind, dict(payload)))

    def kinds(self) -> List[EventKind]:
        return [kind for kind, _ in self.events]
