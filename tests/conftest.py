"""Pytest configuration for all tests."""

from pathlib import Path
from typing import Any

import pytest
from helpers.fake_docker import FakeDockerBackend

from composekit.compose import ComposeProject
from composekit.engine import EngineClient
from composekit.settings import ComposeSettings

DEMO_MANIFEST: dict[str, Any] = {
    "version": "3.8",
    "name": "demo",
    "services": {
        "db": {
            "image": "postgres:16",
            "container_name": "demo-db",
            "environment": {"POSTGRES_PASSWORD": "secret", "POSTGRES_DB": None},
            "ports": ["15432:5432"],
            "networks": ["backend"],
            "volumes": ["dbdata:/var/lib/postgresql/data"],
        },
        "web": {
            "image": "nginx:1.27",
            "command": "nginx -g 'daemon off;'",
            "ports": ["18080:80", "18443:443"],
            "networks": ["backend", "frontend"],
            "labels": {"tier": "web"},
            "ulimits": {"nofile": {"soft": 1024, "hard": 2048}},
        },
        "worker": {
            "image": "busybox:latest",
            "command": ["sleep", "3600"],
            "networks": ["bridge"],
        },
        "builder": {
            "command": ["make"],
        },
    },
    "networks": {
        "backend": {"driver": "bridge", "labels": ["team=qa"]},
        "frontend": {"name": "shared-frontend"},
    },
    "volumes": {
        "dbdata": None,
    },
}


@pytest.fixture
def fake_docker() -> FakeDockerBackend:
    """In-memory docker CLI."""
    return FakeDockerBackend()


@pytest.fixture
def settings() -> ComposeSettings:
    """Settings with every wait shortened so tests run fast."""
    return ComposeSettings(
        project_name="demo",
        bind_host="127.0.0.1",
        probe_min_interval=0.0,
        ready_interval=0.01,
        ready_max_attempts=50,
        run_wait_interval=0.0,
    )


@pytest.fixture
def client(fake_docker: FakeDockerBackend) -> EngineClient:
    return EngineClient(fake_docker)


@pytest.fixture
def manifest_data() -> dict[str, Any]:
    return DEMO_MANIFEST


@pytest.fixture
def project(manifest_data: dict[str, Any], client: EngineClient, settings: ComposeSettings) -> ComposeProject:
    """Project over the demo manifest, backed by the fake engine."""
    return ComposeProject(manifest_data, client=client, settings=settings)


@pytest.fixture
def manifest_file(tmp_path: Path) -> Path:
    """Demo manifest written to ``<tmp>/shop/docker-compose.yml``.

    Returns:
        Path to the written manifest.
    """
    path = tmp_path / "shop" / "docker-compose.yml"
    path.parent.mkdir()
    path.write_text(
        """\
version: "3"
services:
  cache:
    image: redis:7
    ports:
      - "16379:6379"
    networks:
      - net1
    volumes:
      - cachedata:/data
      - ./conf:/usr/local/etc/redis:ro
networks:
  net1:
volumes:
  cachedata:
    name: shop-cache
""",
        encoding="utf-8",
    )
    return path
