"""Tests for create-if-absent network and volume provisioning."""

import asyncio

import pytest
from helpers.fake_docker import FakeDockerBackend

from composekit.compose.provisioner import ResourceProvisioner
from composekit.compose.tracker import ResourceTracker
from composekit.engine import EngineClient
from composekit.errors import CreationError
from composekit.types.manifest import NetworkDefinition


@pytest.mark.asyncio
async def test_concurrent_ensure_creates_network_once():
    fake_docker = FakeDockerBackend(delay=0.01)
    provisioner = ResourceProvisioner(EngineClient(fake_docker))
    tracker = ResourceTracker()

    handles = await asyncio.gather(
        *(provisioner.ensure_network("net1", NetworkDefinition(driver="bridge"), tracker=tracker) for _ in range(4))
    )

    assert len(fake_docker.calls_to("network", "create")) == 1
    assert len({h.id for h in handles}) == 1
    assert list(tracker.networks) == ["net1"]


@pytest.mark.asyncio
async def test_existing_network_is_returned_untouched(client: EngineClient, fake_docker: FakeDockerBackend):
    existing = fake_docker.add_network("net1", driver="macvlan")
    tracker = ResourceTracker()

    provisioner = ResourceProvisioner(client)
    network = await provisioner.ensure_network("net1", NetworkDefinition(driver="bridge"), tracker=tracker)

    assert network.id == existing.id[:12]
    assert network.driver == "macvlan"
    assert fake_docker.calls_to("network", "create") == []
    assert tracker.networks == {}


@pytest.mark.asyncio
async def test_ensure_volume_creates_and_tracks(client: EngineClient, fake_docker: FakeDockerBackend):
    tracker = ResourceTracker()
    provisioner = ResourceProvisioner(client)

    volume = await provisioner.ensure_volume("demo_dbdata", tracker=tracker)
    again = await provisioner.ensure_volume("demo_dbdata", tracker=tracker)

    assert volume.name == again.name == "demo_dbdata"
    assert len(fake_docker.calls_to("volume", "create")) == 1
    assert list(tracker.volumes) == ["demo_dbdata"]


@pytest.mark.asyncio
async def test_ensure_volume_ignores_prefix_matches(client: EngineClient, fake_docker: FakeDockerBackend):
    fake_docker.add_volume("demo_dbdata-1")

    volume = await ResourceProvisioner(client).ensure_volume("demo_dbdata")

    assert volume.name == "demo_dbdata"
    assert set(fake_docker.volumes) == {"demo_dbdata", "demo_dbdata-1"}


@pytest.mark.asyncio
async def test_creation_failure_propagates(client: EngineClient, fake_docker: FakeDockerBackend):
    fake_docker.fail("network", "create", stderr="pool overlaps with other one on this address space")

    with pytest.raises(CreationError, match="pool overlaps"):
        await ResourceProvisioner(client).ensure_network("net1")
