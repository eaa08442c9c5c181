"""
HTTP surface: /api/status and /api/preview over an in-process simulator.
"""

import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient

from fakes import FakeBurner, FakeClock, ScriptedRandom, tiny_block

from wl_sim.api import server
from wl_sim.config import SimulatorConfig
from wl_sim.sim.memory_pool import MemoryPool
from wl_sim.sim.shadow import ResourceShadowController
from wl_sim.sim.simulate import Simulator


class TestServer(unittest.TestCase):

    def setUp(self):
        cfg = SimulatorConfig(ticker_enabled=False, pod_name="sim-0", namespace="vpa-demo")
        self.clock = FakeClock()
        self.sim = Simulator(
            cfg,
            controller=ResourceShadowController(
                cfg.shadow, pool=MemoryPool(block_factory=tiny_block), burner=FakeBurner()
            ),
            rng=ScriptedRandom(),
            clock=self.clock,
        )
        server.init_simulator(simulator=self.sim)
        self.client = TestClient(server.app)

    def tearDown(self):
        server.shutdown_simulator()

    def test_status_before_first_tick(self):
        resp = self.client.get("/api/status")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["pod"], "sim-0")
        self.assertEqual(body["namespace"], "vpa-demo")
        self.assertIsNone(body["simulation"]["current_users"])
        self.assertEqual(body["stats"]["tick_count"], 0)
        self.assertIsNone(body["stats"]["last_burst"])
        self.assertEqual(body["simulation"]["cycle_minutes"], 130)
        self.assertEqual(body["simulation"]["tick_interval_ms"], 2000)

    def test_status_after_ticks(self):
        self.clock.advance(3750)
        self.sim.tick()
        self.clock.advance(2)
        self.sim.tick()

        body = self.client.get("/api/status").json()
        self.assertEqual(body["simulation"]["current_users"], 65)
        self.assertEqual(body["simulation"]["phase"], "peak-plateau")
        self.assertEqual(body["simulation"]["target_mem_mb"], 33)
        self.assertEqual(body["memory"]["held_blocks_mb"], 33)
        self.assertEqual(body["stats"]["tick_count"], 2)
        self.assertEqual(body["stats"]["total_requests"], 130)
        self.assertEqual(body["stats"]["peak_users"], 65)
        self.assertEqual(body["uptime"], "1h 2m")

    def test_status_reports_burst(self):
        self.sim.rng = ScriptedRandom(randoms=[0.0])
        self.clock.advance(1000)
        self.sim.tick()
        body = self.client.get("/api/status").json()
        self.assertIsNotNone(body["stats"]["last_burst"])
        self.assertEqual(body["simulation"]["current_users"], 117)

    def test_status_memory_limit(self):
        with patch.object(server, "MEMORY_LIMIT_MB", 256):
            body = self.client.get("/api/status").json()
        self.assertEqual(body["memory_limit_mb"], 256)

    def test_preview_noise_free(self):
        resp = self.client.get("/api/preview", params={"step": 150})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertFalse(body["noise"])
        self.assertEqual(body["cycle_length_s"], 7800)
        self.assertEqual(len(body["points"]), 52)
        self.assertEqual(body["points"][0]["users"], 10)
        self.assertEqual(body["points"][2]["phase"], "peak-plateau")

    def test_preview_rejects_bad_step(self):
        self.assertEqual(self.client.get("/api/preview", params={"step": 0}).status_code, 422)
        self.assertEqual(self.client.get("/api/preview", params={"step": 0.1}).status_code, 400)

    def test_preview_rejects_unbounded_range(self):
        self.assertEqual(self.client.get("/api/preview", params={"step": 5e-324}).status_code, 400)
        self.assertEqual(self.client.get("/api/preview", params={"cycles": 1e308}).status_code, 400)

    def test_preview_does_not_touch_simulation(self):
        self.client.get("/api/preview", params={"step": 60, "noise": "true", "seed": 1})
        self.assertEqual(self.sim.state.stats.tick_count, 0)
        self.assertEqual(self.sim.snapshot().pool_mb, 0)


class TestServerUninitialized(unittest.TestCase):

    def setUp(self):
        server.shutdown_simulator()
        self.client = TestClient(server.app)

    def test_status_unavailable(self):
        self.assertEqual(self.client.get("/api/status").status_code, 503)

    def test_preview_unavailable(self):
        self.assertEqual(self.client.get("/api/preview").status_code, 503)


class TestInitSimulator(unittest.TestCase):

    def tearDown(self):
        server.shutdown_simulator()

    def test_ticker_started_when_enabled(self):
        cfg = SimulatorConfig(tick_interval=60.0)
        sim = Simulator(
            cfg,
            controller=ResourceShadowController(
                cfg.shadow, pool=MemoryPool(block_factory=tiny_block), burner=FakeBurner()
            ),
        )
        server.init_simulator(simulator=sim)
        self.assertTrue(server.TICKER.running)
        server.shutdown_simulator()
        self.assertIsNone(server.TICKER)
        self.assertIsNone(server.SIMULATOR)

    def test_builds_from_environment(self):
        with patch.dict("os.environ", {"WLSIM_TICKER_ENABLED": "0", "WLSIM_MAX_USERS": "120"}):
            sim = server.init_simulator()
        self.assertEqual(sim.config.signal.max_users, 120)
        self.assertIsNone(server.TICKER)
