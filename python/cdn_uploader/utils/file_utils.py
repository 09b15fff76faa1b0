"""アップロード対象ファイルの探索"""
import os
import fnmatch
from typing import BinaryIO, Generator, List, Optional
from dataclasses import dataclass

from ..exceptions import AssetDiscoveryError
from ..models.config import AssetOptions


@dataclass(frozen=True)
class Asset:
    """アップロード対象のファイル

    path は CDN 上のパス（オブジェクトキー）、local_path はローカルのファイル。
    """
    path: str
    local_path: str

    @property
    def name(self) -> str:
        return os.path.basename(self.local_path)

    def open(self) -> BinaryIO:
        """読み込み用ストリームを開く（全体をメモリに読まない）"""
        return open(self.local_path, "rb")


class FileScanner:
    """ファイルスキャン機能"""

    def __init__(self, options: Optional[AssetOptions] = None):
        self.options = options or AssetOptions()
        self.exclude_patterns = self.options.exclude_patterns
        self.extensions = [
            ext.lower() if ext.startswith(".") else f".{ext.lower()}"
            for ext in self.options.extensions
        ]

    def should_exclude(self, file_path: str) -> bool:
        """ファイルが除外パターンに一致するかチェック"""
        file_name = os.path.basename(file_path)

        if not self.options.include_hidden and file_name.startswith("."):
            return True

        for pattern in self.exclude_patterns:
            # ファイル名でのマッチ
            if fnmatch.fnmatch(file_name, pattern):
                return True
            # パス全体でのマッチ
            if fnmatch.fnmatch(file_path, f"*{pattern}*"):
                return True

        return False

    def matches_extension(self, file_path: str) -> bool:
        if not self.extensions:
            return True
        return os.path.splitext(file_path)[1].lower() in self.extensions

    def cdn_path(self, file_path: str) -> str:
        """ローカルパスから CDN 上のパスを計算"""
        base = self.options.base_path or os.getcwd()
        relative = os.path.relpath(os.path.abspath(file_path), os.path.abspath(base))
        return relative.replace(os.sep, "/")

    def scan(self) -> List[Asset]:
        """設定された全ディレクトリをスキャン（パス順、重複なし）"""
        seen = set()
        assets = []
        for directory in self.options.directories:
            for asset in self.scan_directory(directory, self.options.recursive):
                if asset.local_path not in seen:
                    seen.add(asset.local_path)
                    assets.append(asset)
        return assets

    def scan_directory(self, directory: str, recursive: bool = False) -> Generator[Asset, None, None]:
        """ディレクトリをスキャンしてアセットを生成"""
        if not os.path.isdir(directory):
            raise AssetDiscoveryError(f"Not a directory: {directory}")

        if recursive:
            for root, dirs, files in os.walk(directory):
                # 除外パターンに一致するディレクトリをスキップ
                dirs[:] = sorted(d for d in dirs if not self.should_exclude(os.path.join(root, d)))

                for file in sorted(files):
                    file_path = os.path.join(root, file)
                    if self._accept(file_path):
                        yield Asset(path=self.cdn_path(file_path), local_path=file_path)
        else:
            for item in sorted(os.listdir(directory)):
                file_path = os.path.join(directory, item)
                if os.path.isfile(file_path) and self._accept(file_path):
                    yield Asset(path=self.cdn_path(file_path), local_path=file_path)

    def get_asset(self, file_path: str) -> Asset:
        """単一ファイルのアセットを取得"""
        if not os.path.isfile(file_path):
            raise AssetDiscoveryError(f"Not a file: {file_path}")

        return Asset(path=self.cdn_path(file_path), local_path=file_path)

    def _accept(self, file_path: str) -> bool:
        return not self.should_exclude(file_path) and self.matches_extension(file_path)
