"""Role definitions for crew workers and the lead."""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from ..logger import get_logger

_log = get_logger(__name__)


@dataclass(frozen=True)
class WorkerRole:
    """Persona and capability set a worker is built from. Immutable."""

    name: str
    description: str
    persona: str
    capabilities: Tuple[str, ...] = ()
    title: str = ""

    @property
    def display_name(self) -> str:
        return self.title or self.name


_READ_TOOLS = ("read_file", "list_directory", "search_files")

LEAD_ROLE = WorkerRole(
    name="lead",
    title="Engineering Manager",
    description="Breaks work items into subtasks and advises the team",
    persona=(
        "You are a Senior Engineering Manager leading a team of AI agents.\n"
        "Analyze complex work items and break them into manageable subtasks,\n"
        "assign work according to each specialist's strengths, and give short,\n"
        "concrete guidance. You never perform the tasks yourself."
    ),
    capabilities=("read_file", "list_directory"),
)

DEFAULT_ROLES: Dict[str, WorkerRole] = {
    "architect": WorkerRole(
        name="architect",
        title="Software Architect",
        description="Designs system architecture and makes high-level decisions",
        persona=(
            "You are a Senior Software Architect in a multi-agent team.\n"
            "Design technical solutions, define structure and interfaces, and\n"
            "write clear specifications the developers can follow."
        ),
        capabilities=_READ_TOOLS + ("git_log",),
    ),
    "developer": WorkerRole(
        name="developer",
        title="Senior Developer",
        description="Implements features and writes high-quality code",
        persona=(
            "You are a Senior Software Developer in a multi-agent team.\n"
            "Write clean, working code for the task you are given, fix bugs,\n"
            "and verify changes by reading files after editing."
        ),
        capabilities=_READ_TOOLS + ("write_file", "run_command", "git_status", "git_diff"),
    ),
    "tester": WorkerRole(
        name="tester",
        title="QA Engineer",
        description="Creates comprehensive tests and ensures quality",
        persona=(
            "You are a Senior QA Engineer in a multi-agent team.\n"
            "Write unit and integration tests, look for edge cases, run the\n"
            "test suite and report the results."
        ),
        capabilities=_READ_TOOLS + ("write_file", "run_command"),
    ),
    "reviewer": WorkerRole(
        name="reviewer",
        title="Code Reviewer",
        description="Reviews code for best practices and improvements",
        persona=(
            "You are a Senior Code Reviewer in a multi-agent team.\n"
            "Check work for correctness, security and maintainability, and\n"
            "report concrete issues and improvements."
        ),
        capabilities=_READ_TOOLS + ("git_diff",),
    ),
    "documenter": WorkerRole(
        name="documenter",
        title="Technical Writer",
        description="Creates documentation and user guides",
        persona=(
            "You are a Senior Technical Writer in a multi-agent team.\n"
            "Write clear documentation, READMEs and user guides that match\n"
            "what the code actually does."
        ),
        capabilities=_READ_TOOLS + ("write_file",),
    ),
}


def load_roles(orchestration_cfg: Optional[dict] = None) -> Mapping[str, WorkerRole]:
    """Build the role table from defaults plus the ``orchestration.roles`` section.

    A config entry replaces fields of a default role of the same name, or adds
    a new role. Setting an entry to ``false`` removes a default role.
    """
    roles = dict(DEFAULT_ROLES)
    overrides = (orchestration_cfg or {}).get("roles") or {}

    for name, entry in overrides.items():
        if entry is False:
            roles.pop(name, None)
            continue
        if not isinstance(entry, dict):
            _log.warning("Ignoring malformed role entry %r", name)
            continue
        base = roles.get(name)
        capabilities = entry.get("capabilities")
        roles[name] = WorkerRole(
            name=name,
            title=entry.get("title", base.title if base else name),
            description=entry.get("description", base.description if base else name),
            persona=entry.get("persona", base.persona if base else ""),
            capabilities=tuple(capabilities) if capabilities is not None
            else (base.capabilities if base else _READ_TOOLS),
        )

    return MappingProxyType(roles)
