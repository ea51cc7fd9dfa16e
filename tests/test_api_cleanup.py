import os
import time
from pathlib import Path

import pytest


def _touch(d: Path, name: str, size: int, age_hours: float) -> Path:
    p = d / name
    p.write_bytes(b"\0" * size)
    mtime = time.time() - age_hours * 3600
    os.utime(p, (mtime, mtime))
    return p


@pytest.fixture()
def seeded(tmp_path: Path) -> Path:
    _touch(tmp_path, "gemini-image-1000.png", 200 * 1024, 25)
    _touch(tmp_path, "product-image-2000.png", 1024, 1)
    _touch(tmp_path, "other-file.png", 500 * 1024, 48)
    return tmp_path


def test_stats(make_client, seeded: Path) -> None:
    r = make_client().get("/v1/cleanup")
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    stats = body["stats"]
    assert stats["totalFiles"] == 2
    assert stats["totalSize"] == 201 * 1024
    assert stats["totalSizeKB"] == 201
    assert stats["totalSizeMB"] == 0.2
    assert [f["name"] for f in stats["files"]] == ["gemini-image-1000.png", "product-image-2000.png"]
    first = stats["files"][0]
    assert first["sizeKB"] == 200
    assert first["canDelete"] is True
    assert stats["files"][1]["canDelete"] is False
    # read-only
    assert (seeded / "gemini-image-1000.png").exists()


def test_cleanup_default_window(make_client, seeded: Path) -> None:
    r = make_client().post("/v1/cleanup", json={"maxAgeHours": 24})
    assert r.status_code == 200
    c = r.json()["cleanup"]
    assert c["deletedFiles"] == ["gemini-image-1000.png"]
    assert c["totalDeleted"] == 1
    assert c["totalSizeFreed"] == 204800
    assert c["totalSizeFreedKB"] == 200
    assert c["dryRun"] is False
    assert "message" not in c
    assert not (seeded / "gemini-image-1000.png").exists()
    assert (seeded / "other-file.png").exists()


def test_cleanup_without_body_uses_defaults(make_client, seeded: Path) -> None:
    r = make_client().post("/v1/cleanup")
    assert r.status_code == 200
    assert r.json()["cleanup"]["deletedFiles"] == ["gemini-image-1000.png"]


def test_cleanup_dry_run(make_client, seeded: Path) -> None:
    client = make_client()
    r1 = client.post("/v1/cleanup", json={"maxAgeHours": 24, "dryRun": True})
    r2 = client.post("/v1/cleanup", json={"maxAgeHours": 24, "dryRun": True})
    assert r1.json()["cleanup"] == r2.json()["cleanup"]
    assert r1.json()["cleanup"]["dryRun"] is True
    assert (seeded / "gemini-image-1000.png").exists()


@pytest.mark.parametrize("body", [{"maxAgeHours": -1}, {"maxAgeHours": "24"}, {"dryRun": "yes"}])
def test_cleanup_rejects_bad_input(make_client, seeded: Path, body: dict) -> None:
    r = make_client().post("/v1/cleanup", json=body)
    assert r.status_code == 422
    assert len(list(seeded.iterdir())) == 3


def test_force_delete_requires_token(make_client, seeded: Path) -> None:
    client = make_client()
    for kwargs in ({}, {"json": {}}, {"json": {"confirm": "yes"}}):
        r = client.request("DELETE", "/v1/cleanup", **kwargs)
        assert r.status_code == 400
        assert r.json()["detail"]["code"] == "invalid_input"
        assert "DELETE_ALL_IMAGES" in r.json()["detail"]["message"]
    assert len(list(seeded.iterdir())) == 3


def test_force_delete(make_client, seeded: Path) -> None:
    r = make_client().request("DELETE", "/v1/cleanup", json={"confirm": "DELETE_ALL_IMAGES"})
    assert r.status_code == 200
    c = r.json()["cleanup"]
    assert sorted(c["deletedFiles"]) == ["gemini-image-1000.png", "product-image-2000.png"]
    assert c["message"] == "All generated images have been deleted"
    assert [p.name for p in seeded.iterdir()] == ["other-file.png"]


def test_cleanup_on_missing_output_dir(make_client, tmp_path: Path) -> None:
    r = make_client(output_dir=tmp_path / "missing").post("/v1/cleanup", json={})
    assert r.status_code == 200
    c = r.json()["cleanup"]
    assert c["totalDeleted"] == 0
    assert c["errors"]


def test_cleanup_rejects_nan_window(make_client, seeded: Path) -> None:
    r = make_client().post("/v1/cleanup", content=b'{"maxAgeHours": NaN}', headers={"content-type": "application/json"})
    assert r.status_code == 422
    assert len(list(seeded.iterdir())) == 3
