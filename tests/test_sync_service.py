"""Tests for SyncService wiring and the training loop."""

import asyncio
import logging

import pytest

from conftest import FakePeers, FakeSource
from recommender_service.errors import ConfigurationError
from recommender_service.web.services.peer_client import PeerClient
from recommender_service.web.services.persistence_client import (
    DatabasePersistenceClient,
    RestPersistenceClient,
)
from recommender_service.web.services.sync_service import SyncService, build_order_source


class TestBuildOrderSource:

    def test_rest_preferred(self, test_settings):
        test_settings.database_url = "sqlite+aiosqlite:///ignored.db"
        source = build_order_source(test_settings)
        assert isinstance(source, RestPersistenceClient)
        assert source.base_url == "http://persistence.invalid"

    def test_database(self, test_settings, tmp_path):
        test_settings.persistence_url = None
        test_settings.database_url = f"sqlite+aiosqlite:///{tmp_path / 'store.db'}"
        assert isinstance(build_order_source(test_settings), DatabasePersistenceClient)

    def test_missing(self, test_settings):
        test_settings.persistence_url = None
        with pytest.raises(ConfigurationError):
            build_order_source(test_settings)


class TestSyncService:

    def test_default_peer_client(self, test_settings):
        test_settings.peers = ["host-a:8080"]
        service = SyncService(test_settings, source=FakeSource())
        assert isinstance(service.peers, PeerClient)
        assert service.peers.static_peers == ["http://host-a:8080"]
        assert service.coordinator.peer_timeout == test_settings.peer_timeout_seconds

    def test_invalid_cutoff_override(self, test_settings):
        test_settings.recommender_cutoff = "tomorrow"
        with pytest.raises(ConfigurationError):
            SyncService(test_settings, source=FakeSource(), peers=FakePeers())

    @pytest.mark.asyncio
    async def test_training_loop_retries_until_success(self, test_settings, e2e_items, e2e_orders):
        source = FakeSource(e2e_items, e2e_orders, failures=2)
        service = SyncService(test_settings, source=source, peers=FakePeers())

        await asyncio.wait_for(service.training_loop(), timeout=5)

        assert source.calls == 3
        assert service.trainer.is_ready
        assert service.driver.last_count == 4

    @pytest.mark.asyncio
    async def test_training_loop_periodic(self, test_settings, e2e_items, e2e_orders):
        test_settings.retrain_loop_seconds = 0.01
        source = FakeSource(e2e_items, e2e_orders)
        service = SyncService(test_settings, source=source, peers=FakePeers())

        task = asyncio.create_task(service.training_loop())
        await asyncio.sleep(0.2)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert source.calls >= 2

    @pytest.mark.asyncio
    async def test_training_loop_survives_crashed_cycle(self, test_settings, e2e_items, e2e_orders, caplog):
        class CrashingSource(FakeSource):
            async def fetch_all(self):
                if self.calls == 0:
                    self.calls += 1
                    raise RuntimeError("connection pool exhausted")
                return await super().fetch_all()

        source = CrashingSource(e2e_items, e2e_orders)
        service = SyncService(test_settings, source=source, peers=FakePeers())

        with caplog.at_level(logging.ERROR):
            await asyncio.wait_for(service.training_loop(), timeout=5)

        assert source.calls == 2
        assert service.trainer.is_ready
        assert service.driver.last_count == 4
        assert "Training cycle crashed" in caplog.text
