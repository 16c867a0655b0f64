"""
API tests for /train and /recommend endpoints.

SyncService dùng fake peers và fake persistence qua dependency_overrides.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from conftest import FakePeers, FakeSource, local_millis
from recommender_service.main import app as main_app
from recommender_service.web.routes import recommend, train
from recommender_service.web.services.sync_service import SyncService, get_sync_service


@pytest.fixture
def service(test_settings, e2e_items, e2e_orders):
    return SyncService(test_settings, source=FakeSource(e2e_items, e2e_orders), peers=FakePeers())


@pytest.fixture
def client(service):
    app = FastAPI()
    app.include_router(train.router)
    app.include_router(recommend.router)
    app.dependency_overrides[get_sync_service] = lambda: service
    with TestClient(app) as test_client:
        yield test_client


class TestTrainEndpoints:

    def test_timestamp_before_training(self, client):
        response = client.get("/train/timestamp")
        assert response.status_code == 404

    def test_isready_before_training(self, client):
        response = client.get("/train/isready")
        assert response.status_code == 200
        assert response.json() is False

    def test_train_then_timestamp(self, client):
        response = client.get("/train")
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["record_count"] == 4
        assert body["cutoff"] == local_millis("2020-01-02T10:00:00")

        response = client.get("/train/timestamp")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert int(response.text) == local_millis("2020-01-02T10:00:00")

        assert client.get("/train/isready").json() is True

    def test_train_failure(self, client, service):
        service.driver.source = FakeSource(failures=1)

        response = client.get("/train")
        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["record_count"] == -1

    def test_pinned_cutoff_is_served(self, test_settings):
        test_settings.recommender_cutoff = "2020-01-01T12:00:00"
        pinned = SyncService(test_settings, source=FakeSource(), peers=FakePeers())

        app = FastAPI()
        app.include_router(train.router)
        app.dependency_overrides[get_sync_service] = lambda: pinned
        with TestClient(app) as test_client:
            response = test_client.get("/train/timestamp")

        assert int(response.text) == local_millis("2020-01-01T12:00:00")


class TestRecommendEndpoint:

    def test_not_trained(self, client):
        response = client.post("/recommend", json={"items": [], "uid": 1})
        assert response.status_code == 503

    def test_recommend_after_training(self, client):
        client.get("/train")

        response = client.post("/recommend", json={"items": [{"orderId": 0, "productId": 200}]})
        assert response.status_code == 200
        body = response.json()
        # product 300 thuộc order bị loại (orphan) nên không được train
        assert body["product_ids"] == [100]
        assert body["total"] == 1

    def test_recommend_respects_max(self, client):
        client.get("/train")

        response = client.post("/recommend", json={"items": []})
        assert response.json()["product_ids"] == [200, 100]


class TestMainApp:

    def test_health(self):
        response = TestClient(main_app).get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "service": "recommender"}

    def test_root(self):
        response = TestClient(main_app).get("/")
        assert response.json()["name"] == "Recommender Service"
