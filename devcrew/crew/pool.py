"""WorkerPool: immutable role -> worker registry plus the lead."""

from types import MappingProxyType
from typing import Callable, Dict, Mapping, Tuple

from ..errors import ConfigurationError
from ..logger import get_logger
from .roles import LEAD_ROLE, WorkerRole

_log = get_logger(__name__)

WorkerFactory = Callable[[WorkerRole], object]


class WorkerPool:
    """Fixed set of workers keyed by role name, built once at construction.

    Any object with ``invoke(prompt, *, reasoning, max_steps, on_step)``
    works as a worker; when a task timeout is configured it is also passed
    a ``cancel`` event to honor. ``get`` returns the shared instance; ``checkout``
    builds a fresh one for a task that runs concurrently with others.
    """

    def __init__(
        self,
        roles: Mapping[str, WorkerRole],
        worker_factory: WorkerFactory,
        lead_role: WorkerRole = LEAD_ROLE,
        default_role: str = "developer",
    ):
        if not roles:
            raise ConfigurationError("Worker pool needs at least one role")
        if default_role not in roles:
            raise ConfigurationError(
                f"Default role '{default_role}' is not in the pool ({', '.join(roles)})"
            )

        self._roles: Mapping[str, WorkerRole] = MappingProxyType(dict(roles))
        self._factory = worker_factory
        self.default_role = default_role
        self.lead_role = lead_role

        workers: Dict[str, object] = {}
        for name, role in self._roles.items():
            workers[name] = self._build(role)
        self._workers = MappingProxyType(workers)
        self.lead = self._build(lead_role)
        _log.info("Worker pool ready: %s (lead: %s)", ", ".join(self._roles), lead_role.name)

    def _build(self, role: WorkerRole):
        worker = self._factory(role)
        if worker is None:
            raise ConfigurationError(f"Worker factory returned nothing for role '{role.name}'")
        return worker

    @property
    def roles(self) -> Mapping[str, WorkerRole]:
        return self._roles

    @property
    def role_names(self) -> Tuple[str, ...]:
        return tuple(self._roles)

    def __contains__(self, role: str) -> bool:
        return role in self._roles

    def __len__(self) -> int:
        return len(self._roles)

    def get(self, role: str):
        try:
            return self._workers[role]
        except KeyError:
            raise ConfigurationError(f"Unknown role '{role}'") from None

    def checkout(self, role: str):
        """Independent worker instance for ``role``."""
        if role not in self._roles:
            raise ConfigurationError(f"Unknown role '{role}'")
        return self._build(self._roles[role])
