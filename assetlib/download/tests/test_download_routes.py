import io
import zipfile

import pytest
from fastapi.testclient import TestClient

from assetlib.download.service import DownloadService, set_download_service
from assetlib.identity.jwt_service import JwtService
from assetlib.items.models import Item, Storage
from assetlib.items.repository import InMemoryItemRepository
from assetlib.server import create_app


@pytest.fixture
def env(tmp_path, monkeypatch):
    monkeypatch.setenv("AUTH_JWT_SIGNING", "route-secret")
    out = tmp_path / "data" / "abc123"
    out.mkdir(parents=True)
    (out / "a.ma").write_text("//Maya ASCII 2020 scene")
    (out / "b.png").write_bytes(b"\x89PNG\r\n\x1a\n" + b"\x00" * 64)
    workroot = tmp_path / "work"
    workroot.mkdir()
    repo = InMemoryItemRepository()
    root = str(tmp_path / "data")
    repo.create(
        Item(
            id="abc123",
            item_type="maya",
            output_path=str(out),
            using_rate=5,
            storage=Storage(id="s1", windows=root, linux=root, macos=root),
        )
    )
    set_download_service(DownloadService(repo=repo, tmp_dir=str(workroot)))
    token = JwtService().issue_token({"sub": "artist01", "access_level": "default"})
    return {
        "repo": repo,
        "out": out,
        "workroot": workroot,
        "headers": {"Authorization": f"Bearer {token}"},
        "client": TestClient(create_app()),
    }


def test_download_streams_zip_and_counts_use(env):
    resp = env["client"].get("/download-item", params={"itemtype": "maya", "id": "abc123"}, headers=env["headers"])
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/zip"
    assert resp.headers["content-disposition"] == "attachment; filename=abc123.zip"
    with zipfile.ZipFile(io.BytesIO(resp.content)) as zf:
        assert sorted(zf.namelist()) == ["a.ma", "b.png"]
        assert zf.read("b.png") == (env["out"] / "b.png").read_bytes()
    assert env["repo"].get("maya", "abc123").using_rate == 6
    assert list(env["workroot"].iterdir()) == []


def test_two_downloads_count_two(env):
    for _ in range(2):
        resp = env["client"].get("/download-item", params={"itemtype": "maya", "id": "abc123"}, headers=env["headers"])
        assert resp.status_code == 200
    assert env["repo"].get("maya", "abc123").using_rate == 7


@pytest.mark.parametrize(
    "params,message",
    [
        ({"id": "abc123"}, "itemtype query parameter is required"),
        ({"itemtype": "maya"}, "id query parameter is required"),
        ({"itemtype": "", "id": "abc123"}, "itemtype query parameter is required"),
    ],
)
def test_missing_parameters_are_bad_requests(env, params, message):
    resp = env["client"].get("/download-item", params=params, headers=env["headers"])
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"]["code"] == "download.bad_request"
    assert body["error"]["message"] == message
    assert env["repo"].get("maya", "abc123").using_rate == 5
    assert list(env["workroot"].iterdir()) == []


def test_unknown_item_is_internal_error(env):
    resp = env["client"].get("/download-item", params={"itemtype": "maya", "id": "nope"}, headers=env["headers"])
    assert resp.status_code == 500
    error = resp.json()["error"]
    assert error["code"] == "download.internal_error"
    assert error["resource_kind"] == "item"
    assert error["details"]["cause"] == "item.not_found"
    assert "nope" in error["message"]


def test_unreadable_output_dir_is_internal_error(env):
    item = env["repo"].get("maya", "abc123")
    item.output_path = str(env["out"] / "missing")
    env["repo"].update("maya", item)
    resp = env["client"].get("/download-item", params={"itemtype": "maya", "id": "abc123"}, headers=env["headers"])
    assert resp.status_code == 500
    assert resp.json()["error"]["details"]["cause"] == "archive.io_failure"
    assert env["repo"].get("maya", "abc123").using_rate == 5
    assert list(env["workroot"].iterdir()) == []


def test_streaming_failure_still_cleans_workspace(env, monkeypatch):
    from assetlib.download import routes

    async def _broken_call(self, scope, receive, send):
        raise OSError("connection reset")

    monkeypatch.setattr(routes.FileResponse, "__call__", _broken_call)
    client = TestClient(create_app(), raise_server_exceptions=False)
    resp = client.get("/download-item", params={"itemtype": "maya", "id": "abc123"}, headers=env["headers"])
    assert resp.status_code == 500
    assert list(env["workroot"].iterdir()) == []


def test_health(env):
    assert env["client"].get("/health").json() == {"service": "assetlib", "status": "ok"}


def test_default_service_uses_configured_tmp_dir(env, monkeypatch):
    from assetlib.download.service import get_download_service

    monkeypatch.setenv("DOWNLOAD_TMP_DIR", str(env["workroot"]))
    set_download_service(None)
    assert get_download_service().tmp_dir == str(env["workroot"])
