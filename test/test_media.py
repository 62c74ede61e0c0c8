"""
Tests for media library records
"""

SITE_ID = "site-a"
BASE = f"/api/cms/{SITE_ID}/media"


def media_payload(**overrides) -> dict:
    payload = {
        "originalName": "roof.jpg",
        "type": "image",
        "mimeType": "image/jpeg",
        "size": 2048,
        "url": "https://cdn.example.com/site-a/roof.jpg",
        "metadata": {"width": 1200, "height": 800},
        "tags": ["Solar", "roof", "solar"],
        "alt": "A roof",
    }
    payload.update(overrides)
    return payload


async def register(client, headers, **overrides) -> dict:
    response = await client.post(BASE, json=media_payload(**overrides), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestRegisterMedia:
    async def test_register(self, client, editor_headers):
        media = await register(client, editor_headers)

        assert media["mediaId"].startswith("media_")
        assert media["name"] == "roof.jpg"
        assert media["folder"] == "root"
        assert media["tags"] == ["solar", "roof"]
        assert media["metadata"] == {"width": 1200, "height": 800}

    async def test_path_is_stripped_from_original_name(self, client, editor_headers):
        media = await register(client, editor_headers, originalName="C:\\uploads\\panel.png")
        assert media["originalName"] == "panel.png"

    async def test_requires_site_user(self, client):
        response = await client.post(BASE, json=media_payload())
        assert response.status_code == 401

    async def test_unknown_type(self, client, editor_headers):
        response = await client.post(BASE, json=media_payload(type="audio"), headers=editor_headers)
        assert response.status_code == 400


class TestListMedia:
    async def test_filters(self, client, editor_headers):
        await register(client, editor_headers)
        await register(
            client,
            editor_headers,
            originalName="tour.mp4",
            type="video",
            mimeType="video/mp4",
            folder="videos",
            tags=["tour"],
        )

        videos = (await client.get(BASE, params={"type": "video"})).json()
        assert [m["originalName"] for m in videos["data"]] == ["tour.mp4"]

        tagged = (await client.get(BASE, params={"tag": "Solar"})).json()
        assert [m["originalName"] for m in tagged["data"]] == ["roof.jpg"]

        in_folder = (await client.get(BASE, params={"folder": "videos"})).json()
        assert in_folder["pagination"]["total"] == 1

        searched = (await client.get(BASE, params={"search": "ROOF.JPG"})).json()
        assert [m["originalName"] for m in searched["data"]] == ["roof.jpg"]

    async def test_listing_is_site_scoped(self, client, editor_headers):
        await register(client, editor_headers)
        body = (await client.get("/api/cms/site-b/media")).json()
        assert body["data"] == []


class TestUpdateAndDelete:
    async def test_update(self, client, editor_headers):
        media = await register(client, editor_headers)

        response = await client.put(
            f"{BASE}/{media['mediaId']}",
            json={"alt": "<i>Roof</i> at dusk", "tags": ["dusk"], "folder": "heroes"},
            headers=editor_headers,
        )

        data = response.json()["data"]
        assert data["alt"] == "Roof at dusk"
        assert data["tags"] == ["dusk"]
        assert data["folder"] == "heroes"
        assert data["url"] == media["url"]

    async def test_delete(self, client, editor_headers):
        media = await register(client, editor_headers)

        response = await client.delete(f"{BASE}/{media['mediaId']}", headers=editor_headers)
        assert response.status_code == 200
        assert (await client.get(f"{BASE}/{media['mediaId']}")).status_code == 404

    async def test_missing_media(self, client, editor_headers):
        response = await client.put(f"{BASE}/media_nope", json={"alt": "x"}, headers=editor_headers)
        assert response.status_code == 404
