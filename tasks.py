"""Main invoke tasks file. Use `inv --list` to see available tasks."""

import asyncio

from invoke import Collection, Context, task

from composekit.compose import ComposeProject
from composekit.core.utils import setup_composekit_logging


@task(
    help={
        "service": "Service(s) to start (can be specified multiple times). If not specified, starts all services.",
        "manifest": "Manifest file (default: COMPOSEKIT_MANIFEST_PATH or docker-compose.yml)",
        "avoid_conflicts": "Pick unused container names and free local ports instead of the declared ones.",
    },
    iterable=["service"],
)
def up(
    ctx: Context, service: list[str] | None = None, manifest: str | None = None, avoid_conflicts: bool = False
) -> None:
    """Start compose services in the background."""
    setup_composekit_logging()
    project = ComposeProject(manifest)
    services = list(service) if service else list(project.manifest().services)

    async def run() -> None:
        infos = await asyncio.gather(
            *(project.run_service(name, avoid_conflicts=avoid_conflicts) for name in services)
        )
        print("Started services:")
        for info in infos:
            print(f"  {info.service.name:15} {info.name:30} {info.url or '-'}")

    asyncio.run(run())


@task(
    help={
        "service": "Service(s) to stop (can be specified multiple times). If not specified, stops all services.",
        "manifest": "Manifest file (default: COMPOSEKIT_MANIFEST_PATH or docker-compose.yml)",
        "volumes": "Also remove the manifest's volumes.",
    },
    iterable=["service"],
)
def down(ctx: Context, service: list[str] | None = None, manifest: str | None = None, volumes: bool = False) -> None:
    """Stop compose services and remove their containers."""
    setup_composekit_logging()
    project = ComposeProject(manifest)

    async def run() -> None:
        if service:
            for name in service:
                svc = project.service(name)
                if svc is None:
                    print(f"Unknown service: {name}")
                    continue
                await svc.down(include_defaults=True)
        else:
            await project.teardown(include_defaults=True, include_networks=True, include_volumes=volumes)

    asyncio.run(run())


@task(help={"dry_run": "Only list the exited containers."})
def prune(ctx: Context, dry_run: bool = False) -> None:
    """Remove exited containers."""
    setup_composekit_logging()
    asyncio.run(ComposeProject().prune_exited_containers(dry_run=dry_run))


@task(name="test")
def run_tests(ctx: Context) -> None:
    """Run tests."""
    ctx.run("pytest")


@task(name="lint")
def lint(ctx: Context) -> None:
    """Run linting (no fixes) - for CI."""
    ctx.run("ruff check")
    ctx.run("ruff format --check")


# Create compose namespace
compose_ns = Collection("compose")
compose_ns.add_task(up)
compose_ns.add_task(down)
compose_ns.add_task(prune)

# Create the namespace
ns = Collection()

dev_ns = Collection("dev")
dev_ns.add_task(run_tests)
dev_ns.add_task(lint)
ns.add_collection(dev_ns)
ns.add_collection(compose_ns, name="compose")
