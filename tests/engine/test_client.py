"""Tests for the engine client and resource handles."""

import logging

import pytest
from helpers.fake_docker import FakeDockerBackend

from composekit.engine import EngineClient
from composekit.engine.client import network_create_args, volume_create_args
from composekit.errors import CreationError, EngineCommandError, EngineOutputError
from composekit.types.manifest import NetworkDefinition, VolumeDefinition


def test_network_create_args_cover_declared_options():
    definition = NetworkDefinition.model_validate(
        {
            "driver": "bridge",
            "driver_opts": {"com.docker.network.bridge.name": "br-demo"},
            "subnets": ["172.28.0.0/16"],
            "gateways": ["172.28.0.1"],
            "internal": True,
            "enable_ipv6": True,
            "labels": {"team": "qa"},
        }
    )

    assert network_create_args("demo_backend", definition) == [
        "network",
        "create",
        "--label",
        "team=qa",
        "--gateway",
        "172.28.0.1",
        "--subnet",
        "172.28.0.0/16",
        "--internal",
        "--ipv6",
        "-d",
        "bridge",
        "-o",
        "com.docker.network.bridge.name=br-demo",
        "demo_backend",
    ]


def test_create_args_without_definition():
    assert network_create_args("net1") == ["network", "create", "net1"]
    assert volume_create_args("vol1", VolumeDefinition(driver="local")) == ["volume", "create", "-d", "local", "vol1"]


@pytest.mark.asyncio
async def test_run_daemon_returns_handle_for_new_container(client: EngineClient, fake_docker: FakeDockerBackend):
    container = await client.run_daemon(image="busybox", run_args=["--name", "job"], cmd=["sleep", "60"])

    assert container.name == "job"
    assert await container.is_running() is True
    assert fake_docker.calls_to("container", "run")[0] == [
        "container",
        "run",
        "-d",
        "--name",
        "job",
        "busybox",
        "sleep",
        "60",
    ]


@pytest.mark.asyncio
async def test_run_daemon_wraps_engine_failure(client: EngineClient, fake_docker: FakeDockerBackend):
    fake_docker.add_container("job")

    with pytest.raises(CreationError, match="already in use"):
        await client.run_daemon(image="busybox", run_args=["--name", "job"], wait_interval=0)


@pytest.mark.asyncio
async def test_pull_image_offline_skips_engine(client: EngineClient, fake_docker: FakeDockerBackend):
    await client.pull_image("redis:7", offline=True)
    assert fake_docker.pulled == []

    await client.pull_image("redis:7")
    assert fake_docker.pulled == ["redis:7"]


@pytest.mark.asyncio
async def test_container_teardown_stops_then_removes(client: EngineClient, fake_docker: FakeDockerBackend):
    fake_docker.add_container("web")
    container = await client.find_container("web")

    await container.teardown()

    assert fake_docker.containers == {}
    assert fake_docker.calls_to("container", "stop")
    assert not fake_docker.calls_to("container", "kill")


@pytest.mark.asyncio
async def test_container_teardown_falls_back_to_kill(client: EngineClient, fake_docker: FakeDockerBackend):
    fake_docker.add_container("web")
    fake_docker.fail("container", "stop", stderr="timeout")
    container = await client.find_container("web")

    await container.teardown(ignore_errors=False)

    assert fake_docker.calls_to("container", "kill")
    assert fake_docker.containers == {}


@pytest.mark.asyncio
async def test_container_teardown_skips_rm_for_auto_removed(client: EngineClient, fake_docker: FakeDockerBackend):
    await client.run_daemon(image="busybox", run_args=["--rm", "--name", "job"])
    container = await client.find_container("job")

    await container.teardown(ignore_errors=False)

    assert fake_docker.containers == {}
    assert not fake_docker.calls_to("container", "rm")


@pytest.mark.asyncio
async def test_stop_and_rm_ignore_errors_by_default(client: EngineClient, fake_docker: FakeDockerBackend):
    fake_docker.fail("container", "stop")
    await client.stop_container("missing")
    await client.rm_container("missing")

    with pytest.raises(EngineCommandError, match="Failed to stop container"):
        await client.stop_container("missing", ignore_errors=False)
    with pytest.raises(EngineCommandError, match="No such container"):
        await client.rm_container("missing", ignore_errors=False)


@pytest.mark.asyncio
async def test_prune_exited_containers(client: EngineClient, fake_docker: FakeDockerBackend):
    fake_docker.add_container("alive")
    dead = fake_docker.add_container("dead", running=False)

    assert await client.prune_exited_containers(dry_run=True) == [dead.id]
    assert dead.id in fake_docker.containers

    assert await client.prune_exited_containers() == [dead.id]
    assert [c.name for c in fake_docker.containers.values()] == ["alive"]


@pytest.mark.asyncio
async def test_create_network_returns_canonical_handle(client: EngineClient, fake_docker: FakeDockerBackend):
    network = await client.create_network("demo_backend", NetworkDefinition(driver="overlay"))

    assert network.name == "demo_backend"
    assert network.driver == "overlay"
    assert await network.exists() is True


@pytest.mark.asyncio
async def test_create_network_failure_is_creation_error(client: EngineClient, fake_docker: FakeDockerBackend):
    fake_docker.add_network("demo_backend")

    with pytest.raises(CreationError, match="already exists"):
        await client.create_network("demo_backend")


@pytest.mark.asyncio
async def test_delete_network_removes_every_match(client: EngineClient, fake_docker: FakeDockerBackend):
    fake_docker.add_network("dup")
    fake_docker.add_network("dup")

    await client.delete_network("dup")

    assert fake_docker.networks == {}


@pytest.mark.asyncio
async def test_volume_lifecycle(client: EngineClient, fake_docker: FakeDockerBackend):
    volume = await client.create_volume("demo_dbdata")

    assert volume.mount_point == "/var/lib/docker/volumes/demo_dbdata/_data"
    assert (await volume.inspect())["Name"] == "demo_dbdata"

    await volume.rm(ignore_errors=False)
    assert await volume.exists() is False
    # Removing again only logs
    await volume.rm()


@pytest.mark.asyncio
async def test_container_handle_restart_and_stop(client: EngineClient, fake_docker: FakeDockerBackend):
    fake = fake_docker.add_container("api", running=False)
    container = await client.find_container("api", all_=True)

    await container.restart()
    assert await container.is_running() is True

    await container.stop(ignore_errors=False)
    assert fake.running is False
    assert fake_docker.calls_to("container", "restart") == [["container", "restart", fake.id]]


@pytest.mark.asyncio
async def test_unreadable_inspect_output_is_logged(
    client: EngineClient,
    fake_docker: FakeDockerBackend,
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
):
    fake_docker.add_container("api", running=False)
    container = await client.find_container("api", all_=True)

    async def broken_inspect(container_id: str):
        raise EngineOutputError("Unrecognized ContainerInspect output line: <html>")

    monkeypatch.setattr(client.probe, "inspect_container", broken_inspect)
    with caplog.at_level(logging.WARNING, logger="composekit"):
        await container.teardown()

    assert "Failed to inspect <api> container, treating it as stopped" in caplog.text
    assert "Failed to inspect <api> container, treating it as gone" in caplog.text
