"""End-to-end tests through the FastAPI app."""
from fastapi.testclient import TestClient

from disable_tracking.main import create_app
from disable_tracking.models.disable_record import DisableRecord
from disable_tracking.models.site import Site
from disable_tracking.models.tracking_event import TrackingEvent
from disable_tracking.services.decision_cache import LocalDecisionCache
from disable_tracking.services.disable_store import make_store_loader


def event_count(db, site_id=None):
    query = db.query(TrackingEvent)
    if site_id is not None:
        query = query.filter(TrackingEvent.site_id == site_id)
    return query.count()


class TestTracking:
    def test_enabled_site_is_recorded(self, client, db):
        response = client.get("/track", params={"idsite": "1", "url": "https://beta.example/a"})
        assert response.status_code == 200
        assert response.json()["site_id"] == 1
        assert event_count(db, 1) == 1

    def test_disabled_site_is_dropped(self, client, store, db):
        store.disable(1)
        response = client.get("/track", params={"idsite": "1"})
        assert response.status_code == 204
        assert response.content == b""
        assert event_count(db) == 0

    def test_post_is_gated_too(self, client, store, db):
        store.disable(3)
        assert client.post("/track?idsite=3").status_code == 204
        assert client.post("/track?idsite=2").status_code == 200
        assert event_count(db) == 1

    def test_unknown_site_proceeds(self, client, db, cache):
        response = client.get("/track", params={"idsite": "999"})
        assert response.status_code == 200
        assert event_count(db, 999) == 1
        assert 999 not in cache

    def test_missing_site_id_is_not_gated(self, client, db):
        response = client.get("/track")
        assert response.status_code == 400
        assert event_count(db) == 0

    def test_malformed_site_id_passes_gate(self, client, db):
        response = client.get("/track", params={"idsite": "abc"})
        # reaches the endpoint, which rejects it
        assert response.status_code == 400
        assert event_count(db) == 0

    def test_malformed_site_id_blocked_when_configured(self, session_factory, settings, db):
        settings.GATE_ON_INVALID_SITE_ID = "block"
        app = create_app(session_factory=session_factory, settings=settings)
        response = TestClient(app).get("/track", params={"idsite": "abc"})
        assert response.status_code == 204

    def test_storage_failure_fails_open(self, client, store, db):
        store.disable(1)
        store.uninstall()
        response = client.get("/track", params={"idsite": "1"})
        assert response.status_code == 200
        assert event_count(db, 1) == 1

    def test_storage_failure_fails_closed_when_configured(self, session_factory, settings, store, db):
        settings.GATE_ON_STORAGE_ERROR = "block"
        cache = LocalDecisionCache(make_store_loader(session_factory))
        app = create_app(session_factory=session_factory, settings=settings, decision_cache=cache)
        store.uninstall()
        response = TestClient(app).get("/track", params={"idsite": "2"})
        assert response.status_code == 204
        assert event_count(db) == 0

    def test_other_paths_are_not_gated(self, client, store):
        store.disable(1)
        assert client.get("/", params={"idsite": "1"}).status_code == 200


class TestAdminAuth:
    def test_requires_api_key(self, client):
        assert client.get("/admin/sites").status_code == 401
        assert client.get("/admin/sites", headers={"X-API-Key": "wrong"}).status_code == 401
        assert client.get("/sites/").status_code == 401

    def test_bearer_token_is_accepted(self, client, limited_headers):
        assert client.get("/admin/sites", headers=limited_headers).status_code == 200


class TestAdminApi:
    def test_list_site_states(self, client, store, admin_headers):
        store.disable(3)
        response = client.get("/admin/sites", headers=admin_headers)
        assert response.status_code == 200
        assert response.json() == [
            {"id": 2, "label": "Alpha Shop", "url": "https://alpha.example", "disabled": False},
            {"id": 1, "label": "Beta Blog", "url": "https://beta.example", "disabled": False},
            {"id": 3, "label": "Gamma News", "url": "https://gamma.example", "disabled": True},
        ]

    def test_save_reconciles_and_takes_effect_immediately(self, client, store, db, admin_headers):
        store.disable(1)
        client.get("/track", params={"idsite": "2"})  # caches "enabled" for site 2

        response = client.post("/admin/save", headers=admin_headers, json={"sites": [
            {"site_id": 1, "checked": False},
            {"site_id": 2, "checked": True},
            {"site_id": 3, "checked": False},
        ]})
        assert response.status_code == 200
        assert response.json() == {"enabled": [1], "disabled": [2]}
        assert store.disabled_site_ids() == {2}

        assert client.get("/track", params={"idsite": "2"}).status_code == 204
        assert client.get("/track", params={"idsite": "1"}).status_code == 200

    def test_save_with_unknown_site_changes_nothing(self, client, db, admin_headers):
        response = client.post("/admin/save", headers=admin_headers, json={"sites": [
            {"site_id": 1, "checked": True},
            {"site_id": 77, "checked": True},
        ]})
        assert response.status_code == 404
        assert response.json()["error"] == "InvalidSiteError"
        assert db.query(DisableRecord).count() == 0

    def test_limited_client_cannot_touch_other_sites(self, client, db, limited_headers):
        response = client.post("/admin/save", headers=limited_headers, json={"sites": [
            {"site_id": 1, "checked": True},
            {"site_id": 2, "checked": True},
        ]})
        assert response.status_code == 403
        assert db.query(DisableRecord).count() == 0

        response = client.post("/admin/sites/disable", headers=limited_headers, json={"site_ids": [1]})
        assert response.status_code == 200
        assert response.json() == {"changed": [1], "disabled": True}

    def test_disable_and_enable_endpoints(self, client, store, admin_headers):
        response = client.post("/admin/sites/disable", headers=admin_headers, json={"site_ids": [1, 2]})
        assert response.json() == {"changed": [1, 2], "disabled": True}

        response = client.post("/admin/sites/disable", headers=admin_headers, json={"site_ids": [1]})
        assert response.json()["changed"] == []

        response = client.post("/admin/sites/enable", headers=admin_headers, json={"site_ids": [2]})
        assert response.json() == {"changed": [2], "disabled": False}
        assert store.disabled_site_ids() == {1}

    def test_site_history(self, client, store, admin_headers):
        store.disable(1)
        store.enable(1)
        store.disable(1)
        response = client.get("/admin/sites/1", headers=admin_headers)
        body = response.json()
        assert body["site_id"] == 1
        assert body["disabled"] is True
        assert len(body["history"]) == 2
        assert body["history"][0]["closed_at"] is not None
        assert body["history"][1]["closed_at"] is None

    def test_site_history_unknown_site(self, client, admin_headers):
        assert client.get("/admin/sites/42", headers=admin_headers).status_code == 404

    def test_storage_error_is_reported(self, client, store, admin_headers):
        store.uninstall()
        response = client.get("/admin/sites", headers=admin_headers)
        assert response.status_code == 503
        assert response.json()["error"] == "StorageError"


class TestSitesApi:
    def test_create_and_list(self, client, admin_headers):
        response = client.post("/sites/", headers=admin_headers, json={"name": "Aardvark", "main_url": "https://aa.example"})
        assert response.status_code == 200
        names = [s["name"] for s in client.get("/sites/", headers=admin_headers).json()]
        assert names == ["Aardvark", "Alpha Shop", "Beta Blog", "Gamma News"]

    def test_delete_site_enables_it_first(self, client, store, db, admin_headers):
        store.disable(3)
        response = client.delete("/sites/3", headers=admin_headers)
        assert response.status_code == 200
        assert store.disabled_site_ids() == set()
        assert db.query(Site).filter(Site.id == 3).first() is None

    def test_get_missing_site(self, client, admin_headers):
        assert client.get("/sites/404", headers=admin_headers).status_code == 404
