import asyncio
import json

import pytest

from flocking.app.server import SimulationController
from flocking.sim.core.config import ConfigError, SimulationConfig


def test_snapshot_queue_ack_cleanup() -> None:
    controller = SimulationController(SimulationConfig(num_boids=3))

    async def exercise() -> None:
        await controller.advance()
        await controller.advance()
        async with controller._queue_lock:
            queued_ticks = [item.tick for item in controller._snapshot_queue]
        assert queued_ticks == [1, 2]
        await controller.acknowledge(1)
        async with controller._queue_lock:
            remaining_ticks = [item.tick for item in controller._snapshot_queue]
        assert remaining_ticks == [2]

    asyncio.run(exercise())


def test_snapshot_payload_carries_agents_and_obstacles() -> None:
    controller = SimulationController(SimulationConfig(num_boids=2))

    async def exercise() -> None:
        await controller.add_obstacle(30.0, 40.0)
        await controller.advance()

    asyncio.run(exercise())
    message = json.loads(controller._snapshot_queue[-1].payload)
    assert message["type"] == "snapshot"
    assert len(message["payload"]["agents"]) == 2
    assert message["payload"]["obstacles"][0]["x"] == 30.0
    assert message["payload"]["domain"] == {"width": 800.0, "height": 600.0}


def test_controller_reset_applies_overrides_and_resize() -> None:
    controller = SimulationController(SimulationConfig(num_boids=2))

    async def exercise() -> None:
        await controller.advance()
        await controller.resize(200.0, 100.0)
        await controller.reset({"num_boids": 5, "weights": {"cohesion": 0.0}})

    asyncio.run(exercise())
    assert controller.tick == 0
    assert len(controller.world.agents) == 5
    assert controller.config.weights.cohesion == 0.0
    assert controller.config.weights.avoidance == 4.0
    assert controller.world.boundary.width == 200.0
    assert [item.tick for item in controller._snapshot_queue] == [0]


def test_controller_reset_rejects_invalid_overrides() -> None:
    controller = SimulationController(SimulationConfig(num_boids=2))
    with pytest.raises(ConfigError):
        asyncio.run(controller.reset({"max_speed": -1.0}))
    assert len(controller.world.agents) == 2


def test_snapshot_queue_is_bounded_without_acks() -> None:
    controller = SimulationController(SimulationConfig(num_boids=1), max_queued_snapshots=10)

    async def exercise() -> None:
        for _ in range(500):
            await controller.advance()

    asyncio.run(exercise())
    assert len(controller._snapshot_queue) == 10
    assert [item.tick for item in controller._snapshot_queue] == list(range(491, 501))


def test_client_messages_that_are_not_objects_are_ignored() -> None:
    controller = SimulationController(SimulationConfig(num_boids=1))

    async def exercise() -> None:
        await controller.advance()
        for message in ["[]", "3", '"ack"', "null", "not json"]:
            await controller.handle_message(message)
        await controller.handle_message(json.dumps({"type": "obstacle", "x": 5.0, "y": 6.0}))
        await controller.handle_message(json.dumps({"type": "ack", "tick": 1}))

    asyncio.run(exercise())
    assert len(controller.world.pending_obstacles) == 1
    assert len(controller._snapshot_queue) == 0


def test_resize_is_kept_by_world_config() -> None:
    controller = SimulationController(SimulationConfig(num_boids=2))

    asyncio.run(controller.resize(320.0, 240.0))
    assert controller.config.domain_size == (320.0, 240.0)
    assert controller.world.config is controller.config
