"""Multi-worker task orchestration."""

from .tasks import Priority, TaskStatus, Task, TaskFailure, WorkerResult, ExecutionStep
from .roles import WorkerRole, LEAD_ROLE, DEFAULT_ROLES, load_roles
from .worker import Worker, create_worker_for_role
from .pool import WorkerPool
from .selector import ROLE_RULES, PAIRINGS, select_role, secondary_role
from .decomposer import Decomposer, parse_breakdown
from .timeline import Timeline, TimelineEvent, ContributionMap
from .strategies import StrategyConfig, STRATEGIES
from .validator import CrossValidator, ValidationResult
from .report import RunReport
from .orchestrator import Orchestrator, OrchestratorState
from .service import DevelopmentService, assess_complexity, select_mode
from .crew import Crew, OrchestrationConfig

__all__ = [
    "Priority",
    "TaskStatus",
    "Task",
    "TaskFailure",
    "WorkerResult",
    "ExecutionStep",
    "WorkerRole",
    "LEAD_ROLE",
    "DEFAULT_ROLES",
    "load_roles",
    "Worker",
    "create_worker_for_role",
    "WorkerPool",
    "ROLE_RULES",
    "PAIRINGS",
    "select_role",
    "secondary_role",
    "Decomposer",
    "parse_breakdown",
    "Timeline",
    "TimelineEvent",
    "ContributionMap",
    "StrategyConfig",
    "STRATEGIES",
    "CrossValidator",
    "ValidationResult",
    "RunReport",
    "Orchestrator",
    "OrchestratorState",
    "DevelopmentService",
    "assess_complexity",
    "select_mode",
    "Crew",
    "OrchestrationConfig",
]
