"""ID generators (CUID2 for rows, host-qualified ids for lease owners)."""

import socket

from cuid2 import cuid_wrapper

cuid_generator = cuid_wrapper()


def generate_cuid() -> str:
    """Generate a collision-resistant unique identifier (CUID2)."""
    return str(cuid_generator())


def generate_worker_id() -> str:
    """Lease owner id for one scheduler instance, e.g. `worker-7:clx3...`."""
    return f"{socket.gethostname()}:{generate_cuid()}"
