"""
Tests for the HTTP surface: public routes, admin Basic auth and the admin
routes, using FastAPI TestClient over the in-memory sheet and bucket.
"""

import pytest
from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from matchreel.api.main import app

ADMIN = ("admin", "s3cret")


@pytest.fixture
def client():
    """Create a TestClient for the app."""
    return TestClient(app)


@pytest.fixture
def admin_env(monkeypatch):
    monkeypatch.setenv("ADMIN_USER", ADMIN[0])
    monkeypatch.setenv("ADMIN_PASSWORD", ADMIN[1])


# ============================================================================
# Public routes
# ============================================================================


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "cache_available": False}


def test_list_players(client, seeded_sheets):
    response = client.get("/api/players")
    assert response.status_code == 200
    assert [p["name"] for p in response.json()] == ["Alice", "Bob", "Carol"]


def test_player_detail(client, seeded_sheets):
    response = client.get("/api/players/1")
    assert response.status_code == 200
    data = response.json()
    assert data["player"] == {"id": 1, "name": "Alice"}
    assert [v["video_name"] for v in data["videos"]] == ["qualifier.mp4", "final.mp4"]


def test_player_detail_not_found(client, seeded_sheets):
    response = client.get("/api/players/3")
    assert response.status_code == 404
    assert response.json()["detail"] == "Player not found"


def test_list_videos(client, seeded_sheets):
    response = client.get("/api/videos")
    assert response.status_code == 200
    data = response.json()
    assert [v["name"] for v in data] == ["qualifier.mp4", "final.mp4"]
    assert [p["id"] for p in data[1]["players"]] == [1, 2]


@patch("matchreel.services.player_service.list_players", new_callable=AsyncMock)
def test_list_players_store_failure(mock_list, client):
    mock_list.side_effect = RuntimeError("sheet down")

    response = client.get("/api/players")

    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to load players"


def test_download(client, fake_storage):
    fake_storage.objects["final.mp4"] = b"data"

    response = client.post("/api/videos/download", json={"video_name": "final.mp4"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["download_url"].startswith("https://storage.test/final.mp4")
    assert "status_code" not in body


def test_download_missing(client, fake_storage):
    response = client.post("/api/videos/download", json={"video_name": "gone.mp4"})

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Video file not found", "download_url": None}


# ============================================================================
# Admin authentication
# ============================================================================


def test_admin_requires_credentials(client, admin_env, seeded_sheets):
    response = client.get("/api/admin/players")

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == 'Basic realm="Admin Area"'


def test_admin_rejects_wrong_password(client, admin_env, seeded_sheets):
    response = client.get("/api/admin/players", auth=("admin", "nope"))
    assert response.status_code == 401


def test_admin_unconfigured_is_server_error(client, monkeypatch, seeded_sheets):
    monkeypatch.delenv("ADMIN_USER", raising=False)
    monkeypatch.delenv("ADMIN_PASSWORD", raising=False)

    response = client.get("/api/admin/players", auth=ADMIN)

    assert response.status_code == 500
    assert response.json()["detail"] == "Server configuration error"


def test_admin_with_credentials(client, admin_env, seeded_sheets):
    response = client.get("/api/admin/players", auth=ADMIN)
    assert response.status_code == 200


# ============================================================================
# Admin players
# ============================================================================


def test_admin_create_player(client, admin_env, fake_sheets):
    response = client.post("/api/admin/players", json={"name": " Alice "}, auth=ADMIN)

    assert response.status_code == 200
    assert response.json()["player"] == {"id": 1, "name": "Alice"}


def test_admin_create_player_validation(client, admin_env, fake_sheets):
    response = client.post("/api/admin/players", json={"name": ""}, auth=ADMIN)

    assert response.status_code == 400
    assert response.json()["error"] == "Please enter a player name"


def test_admin_rename_and_delete_player(client, admin_env, seeded_sheets):
    response = client.put("/api/admin/players/2", json={"name": "Robert"}, auth=ADMIN)
    assert response.json()["player"]["name"] == "Robert"

    response = client.delete("/api/admin/players/2", auth=ADMIN)
    assert response.json() == {"success": True, "error": None}

    response = client.delete("/api/admin/players/2", auth=ADMIN)
    assert response.status_code == 404


# ============================================================================
# Admin videos
# ============================================================================


def test_admin_get_video(client, admin_env, seeded_sheets):
    response = client.get("/api/admin/videos/1", auth=ADMIN)

    assert response.status_code == 200
    assert [p["name"] for p in response.json()["players"]] == ["Alice", "Bob", "Carol"]


def test_admin_get_deleted_video(client, admin_env, seeded_sheets):
    response = client.get("/api/admin/videos/3", auth=ADMIN)
    assert response.status_code == 404


def test_admin_direct_create(client, admin_env, seeded_sheets, fake_storage):
    response = client.post(
        "/api/admin/videos",
        files={"file": ("top8.mp4", b"video-bytes", "video/mp4")},
        data={"type": "TOP8", "player_ids": ["1", "4"]},
        auth=ADMIN,
    )

    assert response.status_code == 200
    assert response.json()["video"] == {"id": 4, "name": "top8.mp4", "type": "TOP8"}
    assert fake_storage.objects["top8.mp4"] == b"video-bytes"


def test_admin_direct_update_without_file(client, admin_env, seeded_sheets, fake_storage):
    response = client.put(
        "/api/admin/videos/2",
        data={"type": "3位決定戦", "player_ids": ["4"]},
        auth=ADMIN,
    )

    assert response.status_code == 200
    assert response.json()["video"]["type"] == "3位決定戦"


def test_admin_delete_video(client, admin_env, seeded_sheets, fake_storage):
    fake_storage.objects["final.mp4"] = b"data"

    response = client.delete("/api/admin/videos/2", auth=ADMIN)

    assert response.status_code == 200
    assert fake_storage.deleted == ["final.mp4"]
    assert [v["id"] for v in client.get("/api/videos").json()] == [1]


# ============================================================================
# Admin presigned uploads
# ============================================================================


def test_admin_presigned_round_trip(client, admin_env, seeded_sheets, fake_storage):
    response = client.post(
        "/api/admin/videos/upload-url",
        json={"file_name": "top4.mp4", "content_type": "video/mp4", "file_size": 1024},
        auth=ADMIN,
    )
    assert response.json()["video_name"] == "top4.mp4"

    response = client.post(
        "/api/admin/videos/confirm",
        json={"video_name": "top4.mp4", "type": "TOP4", "player_ids": [1]},
        auth=ADMIN,
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Upload not complete: top4.mp4 was not found in storage"

    fake_storage.objects["top4.mp4"] = b"data"
    response = client.post(
        "/api/admin/videos/confirm",
        json={"video_name": "top4.mp4", "type": "TOP4", "player_ids": [1]},
        auth=ADMIN,
    )
    assert response.status_code == 200
    assert response.json()["video"]["id"] == 4


def test_admin_replace_upload(client, admin_env, seeded_sheets, fake_storage):
    fake_storage.objects.update({"final.mp4": b"old", "final-b.mp4": b"new"})

    response = client.post(
        "/api/admin/videos/2/upload-url",
        json={"file_name": "final-b.mp4", "file_size": 1024},
        auth=ADMIN,
    )
    assert response.json()["success"] is True

    response = client.post(
        "/api/admin/videos/2/confirm",
        json={"video_name": "final-b.mp4", "type": "決勝戦", "player_ids": [1, 2]},
        auth=ADMIN,
    )
    assert response.json()["video"]["name"] == "final-b.mp4"
    assert fake_storage.deleted == ["final.mp4"]


def test_admin_bulk_routes(client, admin_env, seeded_sheets, fake_storage):
    response = client.post(
        "/api/admin/videos/bulk/upload-urls",
        json={"files": [
            {"file_name": "video1.mp4", "file_size": 10},
            {"file_name": "video2.mp4", "file_size": 10},
        ]},
        auth=ADMIN,
    )
    assert response.status_code == 200
    assert len(response.json()["upload_items"]) == 2

    fake_storage.objects["video1.mp4"] = b"1"
    response = client.post(
        "/api/admin/videos/bulk/confirm",
        json={"video_names": ["video1.mp4", "video2.mp4"], "type": "TOP8"},
        auth=ADMIN,
    )
    assert response.status_code == 400
    assert "video2.mp4" in response.json()["error"]
    assert seeded_sheets.writes() == []
