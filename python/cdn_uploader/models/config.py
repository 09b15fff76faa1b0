"""設定管理用のデータクラスと設定の解決"""
from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional
import json
import os

from ..exceptions import InvalidConfigurationError, MissingConfigurationError


PROVIDERS = ("s3", "gcs", "azure")

# 組み込みのデフォルト値。None の項目はユーザー設定で埋める必要がある
DEFAULTS: Dict[str, Any] = {
    "protocol": "https",
    "domain": None,
    "threshold": 10,
    "provider": "s3",
    "credentials": {
        "key": None,
        "secret": None,
    },
    "buckets": None,
    "acl": "public-read",
}


@dataclass
class LoggingConfig:
    """ロギング設定"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(levelname)s - %(message)s"
    file: Optional[str] = None
    library_level: str = "WARNING"  # boto3 などストレージSDKのログレベル


@dataclass(frozen=True)
class TransferOptions:
    """転送オプション"""
    multipart_threshold: int = 100 * 1024 * 1024  # 100MB
    max_concurrency: int = 4
    multipart_chunksize: int = 10 * 1024 * 1024  # 10MB
    use_threads: bool = True
    max_io_queue: int = 100
    io_chunksize: int = 262144  # 256KB
    workers: int = 4  # フラッシュ時の同時リクエスト数


@dataclass
class AssetOptions:
    """アップロード対象ファイルの探索設定"""
    directories: List[str] = field(default_factory=list)
    recursive: bool = True
    extensions: List[str] = field(default_factory=list)
    exclude_patterns: List[str] = field(default_factory=list)
    include_hidden: bool = False
    base_path: Optional[str] = None  # CDN上のパスを計算する基準ディレクトリ


@dataclass(frozen=True)
class Credentials:
    """ストレージの認証情報"""
    key: str
    secret: str = field(repr=False)


@dataclass(frozen=True)
class UploadSettings:
    """解決済みのアップロード設定（不変）"""
    protocol: str
    domain: str
    threshold: int
    access_policy: str
    credentials: Credentials
    buckets: Mapping[str, Any]
    url: str
    provider: str = "s3"
    region: Optional[str] = None
    endpoint_url: Optional[str] = None
    dry_run: bool = False
    verify: bool = True
    transfer: TransferOptions = field(default_factory=TransferOptions)

    @property
    def default_bucket(self) -> str:
        """挿入順で最初のバケット名"""
        return next(iter(self.buckets))


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (Mapping, list, tuple)):
        return len(value) == 0
    return False


def _find_missing(merged: Any, defaults: Mapping[str, Any], prefix: str = "") -> List[str]:
    """デフォルトの構造に沿って空の項目をすべて集める"""
    if not isinstance(merged, Mapping):
        merged = {}

    missing = []
    for key, default in defaults.items():
        name = f"{prefix}{key}"
        value = merged.get(key)
        if isinstance(default, Mapping) and default:
            # ネストした項目も個別にチェック
            missing.extend(_find_missing(value, default, f"{name}."))
        elif _is_blank(value):
            missing.append(name)
    return missing


def _parse_threshold(value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidConfigurationError(f"Invalid threshold: {value!r}")
    # 2.7 などを黙って切り捨てない
    if isinstance(value, float) and not value.is_integer():
        raise InvalidConfigurationError(
            f"Invalid threshold: {value!r}. Must be a positive integer"
        )
    try:
        threshold = int(value)
    except (TypeError, ValueError):
        raise InvalidConfigurationError(f"Invalid threshold: {value!r}")
    if threshold < 1:
        raise InvalidConfigurationError(
            f"Invalid threshold: {threshold}. Must be a positive integer"
        )
    return threshold


def _normalize_buckets(buckets: Any) -> Mapping[str, Any]:
    if isinstance(buckets, Mapping):
        ordered = {str(name): meta if meta is not None else {} for name, meta in buckets.items()}
    elif isinstance(buckets, (list, tuple)):
        ordered = {str(name): {} for name in buckets}
    elif isinstance(buckets, str):
        ordered = {buckets: {}}
    else:
        raise InvalidConfigurationError(
            f"buckets must be a mapping or a list of names, got {type(buckets).__name__}"
        )
    return MappingProxyType(ordered)


def _parse_transfer(data: Any) -> TransferOptions:
    if data is None:
        return TransferOptions()
    if isinstance(data, TransferOptions):
        return data
    try:
        options = TransferOptions(**data)
    except TypeError as e:
        raise InvalidConfigurationError(f"Invalid transfer options: {e}")

    for item in fields(TransferOptions):
        value = getattr(options, item.name)
        if item.type is bool:
            _require_bool(f"transfer.{item.name}", value)
        elif isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise InvalidConfigurationError(
                f"Invalid transfer.{item.name}: {value!r}. Must be a positive integer"
            )
    return options


def _require_bool(name: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise InvalidConfigurationError(f"Invalid {name}: {value!r}. Must be true or false")
    return value


def resolve(
    user_config: Optional[Mapping[str, Any]] = None,
    defaults: Optional[Mapping[str, Any]] = None,
) -> UploadSettings:
    """ユーザー設定をデフォルトに重ねて検証し、UploadSettings を作成

    マージはトップレベルのみ（ユーザーの値がそのまま置き換わる）。
    空の必須項目はまとめて MissingConfigurationError で報告する。
    """
    if defaults is None:
        defaults = DEFAULTS
    else:
        defaults = {**DEFAULTS, **defaults}

    merged = {**defaults, **(user_config or {})}

    missing = _find_missing(merged, defaults)
    if missing:
        raise MissingConfigurationError(missing)

    threshold = _parse_threshold(merged["threshold"])

    provider = str(merged["provider"]).strip().lower()
    if provider not in PROVIDERS:
        raise InvalidConfigurationError(
            f"Unknown provider: {merged['provider']}. Expected one of {', '.join(PROVIDERS)}"
        )

    protocol = str(merged["protocol"]).strip()
    domain = str(merged["domain"]).strip()
    credentials = merged["credentials"]

    return UploadSettings(
        protocol=protocol,
        domain=domain,
        threshold=threshold,
        access_policy=str(merged["acl"]).strip(),
        credentials=Credentials(
            key=str(credentials["key"]).strip(),
            secret=str(credentials["secret"]).strip(),
        ),
        buckets=_normalize_buckets(merged["buckets"]),
        url=f"{protocol}://{domain}",
        provider=provider,
        region=merged.get("region") or None,
        endpoint_url=merged.get("endpoint_url") or None,
        dry_run=_require_bool("dry_run", merged.get("dry_run", False)),
        verify=_require_bool("verify", merged.get("verify", True)),
        transfer=_parse_transfer(merged.get("transfer")),
    )


def _section(cls, data: Any, name: str):
    try:
        return cls(**(data or {}))
    except TypeError as e:
        raise InvalidConfigurationError(f"Invalid '{name}' section: {e}")


@dataclass
class Config:
    """メイン設定クラス"""
    logging: LoggingConfig
    settings: UploadSettings
    assets: AssetOptions

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Config':
        """辞書から読み込み"""
        data = dict(data)
        logging_config = _section(LoggingConfig, data.pop("logging", None), "logging")
        assets = _section(AssetOptions, data.pop("assets", None), "assets")

        return cls(
            logging=logging_config,
            settings=resolve(data),
            assets=assets,
        )

    @classmethod
    def from_file(cls, config_path: str) -> 'Config':
        """設定ファイルから読み込み"""
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file {config_path} not found.")

        try:
            with open(config_path, "r", encoding="utf-8") as file:
                data = json.load(file)
        except json.JSONDecodeError as e:
            raise InvalidConfigurationError(f"Error decoding JSON from {config_path}: {e}")

        if not isinstance(data, dict):
            raise InvalidConfigurationError(
                f"Configuration root must be an object: {config_path}"
            )
        return cls.from_dict(data)
