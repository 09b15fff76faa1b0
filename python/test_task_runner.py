"""アップロード全体の流れのテスト"""
import json

import pytest

import main

from conftest import FakeStorageClient
from cdn_uploader import CdnUploader, MissingConfigurationError, StorageConnectionError
from cdn_uploader.utils.progress import ConsoleReporter, EventKind, RecordingReporter


@pytest.fixture
def site(tmp_path):
    public = tmp_path / "public"
    for relative in ["css/app.css", "js/app.js", "img/logo.png"]:
        path = public / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(relative, encoding="utf-8")
    return public


@pytest.fixture
def factory():
    created = []

    def _factory(settings):
        created.append(FakeStorageClient(settings))
        return created[-1]

    _factory.created = created
    return _factory


def test_run_uploads_discovered_assets(base_config, site, factory):
    base_config["assets"] = {"directories": [str(site)], "base_path": str(site)}
    reporter = RecordingReporter()
    uploader = CdnUploader.from_dict(base_config, reporter=reporter, client_factory=factory)

    successful, failed = uploader.run()

    assert (successful, failed) == (3, 0)
    assert len(factory.created) == 1
    assert sorted(factory.created[0].keys) == ["css/app.css", "img/logo.png", "js/app.js"]
    assert reporter.kinds()[0] is EventKind.STARTED
    assert reporter.kinds()[-1] is EventKind.COMPLETED


def test_connection_is_lazy(base_config, factory):
    uploader = CdnUploader.from_dict(base_config, client_factory=factory)

    assert factory.created == []
    assert not uploader.task_runner.connection.connected


def test_nothing_to_upload_does_not_connect(base_config, site, factory):
    base_config["assets"] = {"directories": [str(site)], "extensions": ["woff2"]}
    uploader = CdnUploader.from_dict(base_config, client_factory=factory)

    assert uploader.upload() == []
    assert factory.created == []


def test_missing_configuration_fails_before_connecting(base_config, factory):
    del base_config["credentials"]["secret"]

    with pytest.raises(MissingConfigurationError, match="secret"):
        CdnUploader.from_dict(base_config, client_factory=factory)

    assert factory.created == []


def test_connection_failure_aborts_run(base_config, make_assets):
    def failing_factory(settings):
        return FakeStorageClient(settings, open_error=OSError("endpoint unreachable"))

    uploader = CdnUploader.from_dict(base_config, client_factory=failing_factory)

    with pytest.raises(StorageConnectionError, match="unreachable"):
        uploader.upload(make_assets("a"))


def test_explicit_assets_reuse_connection(base_config, make_assets, factory):
    uploader = CdnUploader.from_dict(base_config, client_factory=factory)

    uploader.upload(make_assets("a"))
    uploader.upload(make_assets("b"))

    assert len(factory.created) == 1
    assert factory.created[0].keys == ["a", "b"]
    assert len(factory.created[0].open_calls) == 1


def test_asset_url(base_config, factory):
    base_config.update(domain="cdn.example.com/", buckets={"my-bucket": {}})
    uploader = CdnUploader.from_dict(base_config, client_factory=factory)

    assert uploader.asset_url("img/logo.png") == "https://my-bucket.cdn.example.com/img/logo.png"
    assert uploader.url == "https://cdn.example.com/"


def test_console_reporter_output(base_config, make_assets, factory, capsys):
    uploader = CdnUploader.from_dict(
        base_config, reporter=ConsoleReporter(), client_factory=factory,
    )

    uploader.upload(make_assets("a", "b"))

    out = capsys.readouterr().out
    assert "Uploading in progress..." in out
    assert "[1/2] URL: https://first-bucket.storage.test/a" in out
    assert "Upload completed successfully." in out


def test_main_reports_missing_asset_directory(base_config, tmp_path, capsys, monkeypatch):
    """探索ディレクトリが無い場合はトレースバックではなくエラー表示で終了"""

    base_config["assets"] = {"directories": [str(tmp_path / "missing")]}
    base_config["verify"] = False
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps(base_config), encoding="utf-8")
    monkeypatch.setattr("sys.argv", ["main.py", str(config_path)])

    with pytest.raises(SystemExit) as exc_info:
        main.main()

    assert exc_info.value.code == 1
    assert "Not a directory" in capsys.readouterr().err
