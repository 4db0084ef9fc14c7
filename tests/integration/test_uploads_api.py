"""Integration tests for uploads, gallery listing, static serving and CORS."""

from __future__ import annotations

import os

from pfp_gallery.services.upload_store import UploadStore


def _visible_files(directory) -> list[str]:
    return sorted(name for name in os.listdir(directory) if not name.startswith("."))


# ---------------------------------------------------------------------------
# Upload endpoint.
# ---------------------------------------------------------------------------


class TestUpload:
    """Test POST /api/upload."""

    def test_valid_jpeg_is_stored_served_and_listed(self, test_client, admin_headers, jpeg_bytes, upload_dir):
        resp = test_client.post(
            "/api/upload",
            files={"file": ("Holiday Photo.JPG", jpeg_bytes, "image/jpeg")},
            headers=admin_headers,
        )
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["ok"] is True
        assert data["url"].startswith("/uploads/")
        assert data["url"] == f"/uploads/{data['filename']}"
        assert data["filename"].startswith("holiday_photo-")
        assert data["filename"].endswith(".jpg")

        fetched = test_client.get(data["url"])
        assert fetched.status_code == 200
        assert fetched.content == jpeg_bytes

        gallery = test_client.get("/api/gallery").json()
        assert gallery["ok"] is True
        assert {"url": data["url"], "name": data["filename"]} in gallery["items"]
        assert _visible_files(upload_dir) == [data["filename"]]

    def test_same_name_twice_gives_two_files(self, test_client, admin_headers, upload_dir):
        first = test_client.post(
            "/api/upload", files={"file": ("pic.png", b"first", "image/png")}, headers=admin_headers
        ).json()
        second = test_client.post(
            "/api/upload", files={"file": ("pic.png", b"second", "image/png")}, headers=admin_headers
        ).json()

        assert first["filename"] != second["filename"]
        assert test_client.get(first["url"]).content == b"first"
        assert test_client.get(second["url"]).content == b"second"
        assert len(_visible_files(upload_dir)) == 2

    def test_oversized_file_is_rejected(self, test_client, admin_headers, upload_dir):
        payload = b"\x89PNG\r\n\x1a\n" + b"\x00" * (6 * 1024 * 1024)
        resp = test_client.post(
            "/api/upload", files={"file": ("big.png", payload, "image/png")}, headers=admin_headers
        )
        assert resp.status_code == 400
        assert resp.json() == {"ok": False, "error": "File too large (max 5 MB)"}
        assert os.listdir(upload_dir) == []

    def test_non_image_is_rejected(self, test_client, admin_headers, upload_dir):
        resp = test_client.post(
            "/api/upload", files={"file": ("notes.txt", b"hello", "text/plain")}, headers=admin_headers
        )
        assert resp.status_code == 400
        assert resp.json() == {"ok": False, "error": "Only image uploads are allowed"}
        assert os.listdir(upload_dir) == []

    def test_missing_file_is_400(self, test_client, admin_headers):
        resp = test_client.post("/api/upload", data={"other": "x"}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json() == {"ok": False, "error": "No file uploaded"}

    def test_missing_file_without_password_is_401(self, test_client):
        resp = test_client.post("/api/upload", data={"other": "x"})
        assert resp.status_code == 401

    def test_unauthorized_upload_is_rolled_back(self, test_client, jpeg_bytes, upload_dir, monkeypatch):
        removed = []
        original_remove = UploadStore.remove

        def spy_remove(self, stored):
            removed.append(stored.filename)
            assert stored.path.exists()
            original_remove(self, stored)

        monkeypatch.setattr(UploadStore, "remove", spy_remove)

        resp = test_client.post(
            "/api/upload",
            files={"file": ("pic.jpg", jpeg_bytes, "image/jpeg")},
            headers={"x-admin-pass": "wrong"},
        )
        assert resp.status_code == 401
        assert resp.json() == {"ok": False, "error": "Unauthorized"}
        assert len(removed) == 1
        assert os.listdir(upload_dir) == []
        assert test_client.get("/api/gallery").json()["items"] == []


# ---------------------------------------------------------------------------
# Gallery listing.
# ---------------------------------------------------------------------------


class TestGallery:
    """Test GET /api/gallery."""

    def test_empty(self, test_client):
        assert test_client.get("/api/gallery").json() == {"ok": True, "items": []}

    def test_hidden_files_are_skipped(self, test_client, upload_dir):
        (upload_dir / ".DS_Store").write_bytes(b"")
        (upload_dir / "manual.png").write_bytes(b"png")

        items = test_client.get("/api/gallery").json()["items"]
        assert items == [{"url": "/uploads/manual.png", "name": "manual.png"}]

    def test_unreadable_directory_lists_nothing(self, test_client, upload_dir):
        os.rmdir(upload_dir)
        resp = test_client.get("/api/gallery")
        assert resp.status_code == 200
        assert resp.json() == {"ok": True, "items": []}


# ---------------------------------------------------------------------------
# Static files, SPA fallback, health and CORS.
# ---------------------------------------------------------------------------


class TestStaticAndFallback:

    def test_root_serves_entry_page(self, test_client):
        resp = test_client.get("/")
        assert resp.status_code == 200
        assert "PFP Gallery" in resp.text

    def test_client_route_falls_back_to_entry_page(self, test_client):
        resp = test_client.get("/gallery/some/client/route")
        assert resp.status_code == 200
        assert "PFP Gallery" in resp.text

    def test_bundle_file_is_served(self, test_client):
        resp = test_client.get("/app.js")
        assert resp.status_code == 200
        assert "console.log" in resp.text

    def test_missing_upload_is_404(self, test_client):
        resp = test_client.get("/uploads/nope.png")
        assert resp.status_code == 404
        assert resp.json()["ok"] is False

    def test_health(self, test_client):
        assert test_client.get("/health").json() == {"ok": True, "status": "healthy"}
        assert test_client.get("/health/db").json() == {"ok": True, "database": "connected"}


class TestCors:

    def test_bare_options_is_200(self, test_client):
        resp = test_client.options("/api/pfps")
        assert resp.status_code == 200
        assert resp.content == b""
        assert resp.headers["access-control-allow-origin"] == "*"

    def test_preflight_allows_admin_header(self, test_client):
        resp = test_client.options(
            "/api/pfps",
            headers={
                "Origin": "https://example.org",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "content-type,x-admin-pass",
            },
        )
        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "*"

    def test_simple_request_gets_wildcard_origin(self, test_client):
        resp = test_client.get("/api/pfps", headers={"Origin": "https://example.org"})
        assert resp.headers["access-control-allow-origin"] == "*"

    def test_error_responses_carry_cors_headers(self, test_client):
        resp = test_client.post("/api/pfps", json={})
        assert resp.status_code == 401
        assert resp.headers["access-control-allow-origin"] == "*"

    def test_preflight_with_unlisted_header_is_200(self, test_client):
        resp = test_client.options(
            "/api/pfps",
            headers={
                "Origin": "https://example.org",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "content-type,x-admin-pass,authorization",
            },
        )
        assert resp.status_code == 200
        assert resp.content == b""
        assert resp.headers["access-control-allow-origin"] == "*"

    def test_preflight_with_unlisted_method_is_200(self, test_client):
        resp = test_client.options(
            "/api/pfps/abc",
            headers={
                "Origin": "https://example.org",
                "Access-Control-Request-Method": "PATCH",
            },
        )
        assert resp.status_code == 200
        assert resp.content == b""
