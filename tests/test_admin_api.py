import pytest

from gallery_api.config import settings

from conftest import API


@pytest.fixture
def production(monkeypatch):
    monkeypatch.setattr(settings, "ENVIRONMENT", "production")


class TestAdminGate:
    def test_missing_key_rejected_in_production(self, client, production):
        response = client.get(f"{API}/admin/dashboard")
        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Unauthorized: Admin access required"}

    def test_wrong_key_rejected_in_production(self, client, production):
        response = client.get(f"{API}/admin/dashboard", headers={"X-Admin-Key": "nope"})
        assert response.status_code == 401

    def test_correct_key_accepted_in_production(self, client, production):
        response = client.get(f"{API}/admin/dashboard", headers={"X-Admin-Key": "test-admin-key"})
        assert response.status_code == 200

    def test_unset_admin_key_denies_everyone(self, client, production, monkeypatch):
        monkeypatch.setattr(settings, "ADMIN_KEY", "")
        response = client.get(f"{API}/admin/images", headers={"X-Admin-Key": "anything"})
        assert response.status_code == 401

    def test_image_writes_are_gated(self, client, production, png_bytes, storage):
        response = client.post(
            f"{API}/gallery/images",
            files={"image": ("a.png", png_bytes, "image/png")},
            data={"title": "Test"},
        )
        assert response.status_code == 401
        assert storage.objects == {}

        assert client.put(f"{API}/gallery/images/1", json={"title": "x"}).status_code == 401
        assert client.delete(f"{API}/gallery/images/1").status_code == 401

    def test_public_reads_stay_open(self, client, production):
        assert client.get(f"{API}/gallery/images").status_code == 200
        assert client.get(f"{API}/gallery/categories").status_code == 200

    def test_gate_is_open_outside_production(self, client):
        assert client.get(f"{API}/admin/images").status_code == 200


class TestImageAdministration:
    def test_status_change_hides_image_from_public(self, client, upload):
        image = upload()
        response = client.put(f"{API}/admin/images/{image['id']}/status", json={"status": "inactive"})
        assert response.status_code == 200
        body = response.json()
        assert body["data"]["status"] == "inactive"
        assert body["message"] == "Image status updated to inactive"
        assert client.get(f"{API}/gallery/images").json()["count"] == 0

        client.put(f"{API}/admin/images/{image['id']}/status", json={"status": "active"})
        assert client.get(f"{API}/gallery/images").json()["count"] == 1

    def test_invalid_status(self, client, upload):
        image = upload()
        response = client.put(f"{API}/admin/images/{image['id']}/status", json={"status": "archived"})
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid status. Must be active, inactive, or draft"

        missing = client.put(f"{API}/admin/images/{image['id']}/status", json={})
        assert missing.status_code == 400

    def test_status_of_missing_image(self, client):
        response = client.put(f"{API}/admin/images/999/status", json={"status": "draft"})
        assert response.status_code == 404

    def test_featured_toggle(self, client, upload):
        image = upload()
        featured = client.put(f"{API}/admin/images/{image['id']}/featured", json={"is_featured": True})
        assert featured.json()["data"]["is_featured"] is True
        assert featured.json()["message"] == "Image featured successfully"

        unfeatured = client.put(f"{API}/admin/images/{image['id']}/featured", json={})
        assert unfeatured.json()["data"]["is_featured"] is False
        assert unfeatured.json()["message"] == "Image unfeatured successfully"

    def test_list_by_status(self, client, upload):
        images = [upload(title=f"Image {n}") for n in range(3)]
        client.put(f"{API}/admin/images/{images[0]['id']}/status", json={"status": "draft"})

        everything = client.get(f"{API}/admin/images").json()
        assert everything["count"] == 3
        # Newest first
        assert [image["id"] for image in everything["data"]] == [image["id"] for image in reversed(images)]

        drafts = client.get(f"{API}/admin/images", params={"status": "draft"}).json()
        assert [image["id"] for image in drafts["data"]] == [images[0]["id"]]

        active = client.get(f"{API}/admin/images", params={"status": "active"}).json()
        assert active["count"] == 2

    def test_list_rejects_unknown_status(self, client):
        response = client.get(f"{API}/admin/images", params={"status": "deleted"})
        assert response.status_code == 400

    def test_pagination(self, client, upload):
        images = [upload(title=f"Image {n}") for n in range(4)]
        newest_first = [image["id"] for image in reversed(images)]

        page = client.get(f"{API}/admin/images", params={"limit": 2, "offset": 1}).json()
        assert [image["id"] for image in page["data"]] == newest_first[1:3]

        window = client.get(f"{API}/admin/images", params={"offset": 1}).json()
        assert [image["id"] for image in window["data"]] == newest_first[1:]

        first = client.get(f"{API}/admin/images", params={"limit": 1}).json()
        assert [image["id"] for image in first["data"]] == newest_first[:1]


class TestCategoryAdministration:
    def test_create_slugifies_name(self, client):
        response = client.post(
            f"{API}/admin/categories",
            json={"name": "Sliding  Doors", "display_name": "Sliding Doors", "sort_order": 2},
        )
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["name"] == "sliding-doors"
        assert data["display_name"] == "Sliding Doors"
        assert data["description"] == ""
        assert data["sort_order"] == 2

    def test_create_requires_name_and_display_name(self, client):
        response = client.post(f"{API}/admin/categories", json={"name": "Windows"})
        assert response.status_code == 400
        assert response.json()["error"] == "Name and display_name are required"

    def test_update(self, client, create_category):
        category = create_category()
        response = client.put(
            f"{API}/admin/categories/{category['id']}",
            json={"name": "Front Rooms", "display_name": "", "description": "Bright"},
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["name"] == "front-rooms"
        assert data["display_name"] == "Living Rooms"
        assert data["description"] == "Bright"

    def test_update_missing_category(self, client):
        response = client.put(f"{API}/admin/categories/999", json={"display_name": "Nope"})
        assert response.status_code == 404
        assert response.json()["error"] == "Category not found"

    def test_delete_blocked_while_images_reference_it(self, client, create_category, upload):
        category = create_category()
        image = upload(category_id=category["id"])
        client.put(f"{API}/admin/images/{image['id']}/status", json={"status": "inactive"})

        blocked = client.delete(f"{API}/admin/categories/{category['id']}")
        assert blocked.status_code == 400
        assert blocked.json()["error"] == "Cannot delete category with 1 associated images"

        client.delete(f"{API}/gallery/images/{image['id']}")
        deleted = client.delete(f"{API}/admin/categories/{category['id']}")
        assert deleted.status_code == 200
        assert deleted.json() == {"success": True, "message": "Category deleted successfully"}

        assert client.delete(f"{API}/admin/categories/{category['id']}").status_code == 404


def test_storage_usage(client, upload, png_bytes):
    upload()
    image = upload()
    client.put(f"{API}/admin/images/{image['id']}/status", json={"status": "draft"})

    data = client.get(f"{API}/admin/storage/usage").json()["data"]
    assert data["totalFiles"] == 2
    assert data["totalSize"] == 2 * len(png_bytes)
    assert data["totalSizeFormatted"] == "0.00 MB"
    assert data["bucketName"] == settings.STORAGE_BUCKET
    assert data["maxFileSize"] == 10 * 1024 * 1024
    assert "image/png" in data["allowedTypes"]


def test_dashboard(client, upload, create_category):
    category = create_category()
    for n in range(6):
        upload(title=f"Image {n}", category_id=category["id"])

    data = client.get(f"{API}/admin/dashboard").json()["data"]
    assert data["stats"]["totalImages"] == 6
    assert data["stats"]["totalCategories"] == 1
    assert len(data["recentImages"]) == 5
    assert data["categories"][0]["name"] == "living-rooms"
    assert data["categories"][0]["count"] == 6
    assert data["systemInfo"]["environment"] == "test"
    assert data["systemInfo"]["uptime"] >= 0
