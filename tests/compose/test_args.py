"""Tests for run-argument assembly helpers."""

import os
from typing import Any

from composekit.compose.args import alias_args, env_args, label_args, parse_networks, parse_volumes, ulimit_args
from composekit.compose.manifest import ManifestResolver
from composekit.types.manifest import Manifest, ULimit


def _manifest(data: dict[str, Any]) -> Manifest:
    return Manifest.model_validate(data)


def test_env_args_from_list_and_mapping():
    assert env_args(["A=1", "B=two"]) == ["-e", "A=1", "-e", "B=two"]
    assert env_args({"A": 1, "DEBUG": True, "PASS_THROUGH": None}) == [
        "-e",
        "A=1",
        "-e",
        "DEBUG=true",
        "-e",
        "PASS_THROUGH",
    ]


def test_ulimit_args_render_pairs():
    assert ulimit_args({"nproc": 512, "nofile": ULimit(soft=1024, hard=2048), "core": ULimit(soft=0)}) == [
        "--ulimit",
        "nproc=512",
        "--ulimit",
        "nofile=1024:2048",
        "--ulimit",
        "core=0",
    ]


def test_label_and_alias_args():
    assert label_args(["tier=web"]) == ["--label", "tier=web"]
    assert alias_args(["web", "", "3f2a9c1b7d4e"]) == ["--network-alias", "web", "--network-alias", "3f2a9c1b7d4e"]


def test_parse_networks_resolves_declared_keys():
    manifest = _manifest({"name": "demo", "networks": {"backend": None, "frontend": {"name": "shared"}}})
    parsed = parse_networks(["backend", "frontend", "host"], manifest, ManifestResolver())

    assert parsed.networks == ("demo_backend", "shared", "host")
    assert parsed.run_args == ("--network", "demo_backend", "--network", "shared", "--network", "host")


def test_parse_volumes_named_and_bind_mounts():
    manifest = _manifest({"name": "demo", "volumes": {"dbdata": None}})
    parsed = parse_volumes(
        ["dbdata:/var/lib/data", "./conf:/etc/app:ro"],
        manifest,
        ManifestResolver(),
        name_suffix="-2",
    )

    assert parsed.volumes == ("demo_dbdata-2",)
    assert parsed.keys == ("dbdata",)
    assert parsed.run_args == (
        "-v",
        "demo_dbdata-2:/var/lib/data",
        "-v",
        f"{os.path.abspath('./conf')}:/etc/app:ro",
    )
