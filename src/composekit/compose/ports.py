"""Local port allocation for ``local:container`` port declarations.

Port availability is checked by binding a socket, the same way the OS is
asked for an ephemeral port. Ports handed out by an allocator stay reserved in
that allocator so that services brought up together never receive the same
local port, even before their containers actually bind it.
"""

from __future__ import annotations

import socket
from collections.abc import Sequence

from composekit.core.utils import logger
from composekit.types.service import ParsedPorts, PortMapping


def port_is_free(port: int, host: str = "0.0.0.0") -> bool:
    """Check whether a TCP port can be bound on the given host."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        try:
            s.bind((host, port))
        except OSError:
            return False
        return True


def find_free_port(host: str = "0.0.0.0") -> int:
    """Find and return an available TCP port.

    Uses the OS to allocate a free port by binding to port 0,
    which lets the OS choose an available port.
    """
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind((host, 0))
        return s.getsockname()[1]


def parse_port_declaration(declaration: str) -> tuple[int, int]:
    """Split ``"8080:80"`` into ``(8080, 80)``."""
    local, container = declaration.split(":")
    return int(local), int(container)


class PortAllocator:
    """Allocates local ports for service port declarations.

    Args:
        host: Interface the ports are checked on (default: all interfaces).
    """

    def __init__(self, host: str = "0.0.0.0") -> None:
        self.host = host
        self.reserved: set[int] = set()

    def free_port_near(self, preferred: int) -> int:
        """Return ``preferred`` if it is free and unreserved, else any free port."""
        if preferred not in self.reserved and port_is_free(preferred, self.host):
            port = preferred
        else:
            port = find_free_port(self.host)
            while port in self.reserved:
                port = find_free_port(self.host)
            logger.debug(f"Port {preferred} unavailable, using {port}")
        self.reserved.add(port)
        return port

    def release(self, ports: Sequence[PortMapping]) -> None:
        """Return previously allocated local ports to the pool."""
        for mapping in ports:
            if mapping.local_port is not None:
                self.reserved.discard(mapping.local_port)

    def allocate(
        self,
        declarations: Sequence[str],
        *,
        avoid_conflicts: bool = True,
        map_local: bool = True,
    ) -> ParsedPorts:
        """Resolve port declarations into a port table and ``-p`` run arguments.

        Args:
            declarations: ``"local:container"`` strings, in declaration order.
            avoid_conflicts: If True, move a taken local port to a free one;
                if False, use the declared local port as is.
            map_local: If False, publish nothing and leave every ``local_port`` None.

        Returns:
            ParsedPorts with one mapping per declaration, in declaration order.
        """
        ports = []
        run_args: list[str] = []
        for declaration in declarations:
            default_local, container = parse_port_declaration(declaration)
            if not map_local:
                local = None
            elif avoid_conflicts:
                local = self.free_port_near(default_local)
            else:
                local = default_local
            ports.append(PortMapping(local_port=local, default_local_port=default_local, container_port=container))
            if local is not None:
                run_args.extend(["-p", f"{local}:{container}"])
        return ParsedPorts(ports=tuple(ports), run_args=tuple(run_args))


__all__ = [
    "PortAllocator",
    "find_free_port",
    "parse_port_declaration",
    "port_is_free",
]
