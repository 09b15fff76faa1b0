"""公開URLの組み立て"""
from ..models.config import UploadSettings


def normalize_protocol(protocol: str) -> str:
    """末尾の '/' と ':' を落として '://' を付ける"""
    return protocol.rstrip("/").rstrip(":") + "://"


def normalize_domain(domain: str) -> str:
    return domain.rstrip("/") + "/"


def compose_url(settings: UploadSettings, bucket_name: str, path: str) -> str:
    """アセットの公開URLを返す

    例: https + my-bucket + cdn.example.com/ + img/logo.png
        -> https://my-bucket.cdn.example.com/img/logo.png
    """
    return (
        normalize_protocol(settings.protocol)
        + bucket_name
        + "."
        + normalize_domain(settings.domain)
        + path
    )
