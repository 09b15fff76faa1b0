"""アセット探索のテスト"""
import pytest

from cdn_uploader.models.config import AssetOptions
from cdn_uploader.exceptions import AssetDiscoveryError, CdnUploaderError
from cdn_uploader.utils.file_utils import Asset, FileScanner


@pytest.fixture
def public_dir(tmp_path):
    public = tmp_path / "public"
    for relative in ["css/app.css", "css/app.css.map", "js/app.js", "js/vendor/lib.js",
                     "img/logo.png", ".hidden/secret.txt", "css/.DS_Store"]:
        path = public / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(relative, encoding="utf-8")
    return public


def test_scan_recursive_with_base_path(public_dir):
    scanner = FileScanner(AssetOptions(directories=[str(public_dir)], base_path=str(public_dir)))

    paths = [asset.path for asset in scanner.scan()]

    assert paths == ["css/app.css", "css/app.css.map", "img/logo.png", "js/app.js", "js/vendor/lib.js"]


def test_hidden_files_can_be_included(public_dir):
    scanner = FileScanner(AssetOptions(
        directories=[str(public_dir)], base_path=str(public_dir), include_hidden=True,
    ))

    paths = {asset.path for asset in scanner.scan()}

    assert ".hidden/secret.txt" in paths
    assert "css/.DS_Store" in paths


def test_extension_and_exclude_filters(public_dir):
    scanner = FileScanner(AssetOptions(
        directories=[str(public_dir / "css"), str(public_dir / "js")],
        base_path=str(public_dir),
        extensions=["CSS", ".js"],
        exclude_patterns=["vendor"],
    ))

    paths = [asset.path for asset in scanner.scan()]

    assert paths == ["css/app.css", "js/app.js"]


def test_non_recursive_scan(public_dir):
    scanner = FileScanner(AssetOptions(base_path=str(public_dir)))

    paths = [asset.path for asset in scanner.scan_directory(str(public_dir / "js"))]

    assert paths == ["js/app.js"]


def test_overlapping_directories_yield_each_file_once(public_dir):
    scanner = FileScanner(AssetOptions(
        directories=[str(public_dir / "js"), str(public_dir / "js" / "vendor")],
        base_path=str(public_dir),
    ))

    paths = [asset.path for asset in scanner.scan()]

    assert paths == ["js/app.js", "js/vendor/lib.js"]


def test_scan_missing_directory(tmp_path):
    scanner = FileScanner(AssetOptions(directories=[str(tmp_path / "nope")]))

    with pytest.raises(AssetDiscoveryError, match="Not a directory"):
        scanner.scan()


def test_get_asset(public_dir):
    scanner = FileScanner(AssetOptions(base_path=str(public_dir)))

    asset = scanner.get_asset(str(public_dir / "img" / "logo.png"))

    assert asset.path == "img/logo.png"
    assert asset.name == "logo.png"
    with pytest.raises(AssetDiscoveryError, match="Not a file"):
        scanner.get_asset(str(public_dir / "img"))


def test_asset_open_streams_bytes(tmp_path):
    local = tmp_path / "app.js"
    local.write_bytes(b"console.log(1)")

    with Asset(path="js/app.js", local_path=str(local)).open() as stream:
        assert stream.read() == b"console.log(1)"


def test_discovery_error_is_package_error():
    assert issubclass(AssetDiscoveryError, CdnUploaderError)
