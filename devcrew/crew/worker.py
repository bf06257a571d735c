"""Worker: a role persona bound to a language model and its allowed tools."""

import json
import threading
from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING

from ..errors import DevcrewError, TaskCancelledError
from ..llm import LLMAdapter
from ..logger import get_logger
from ..tools import ToolRegistry
from .roles import WorkerRole
from .tasks import ExecutionStep, WorkerResult

if TYPE_CHECKING:
    from ..config import Config, ModelPreset

_log = get_logger(__name__)

StepCallback = Callable[[str], None]

_REASONING_HINT = (
    "Before acting, think through the task step by step and state a short plan.\n"
    "Use tools to inspect and change the project; do not guess file contents."
)
_DIRECT_HINT = "Answer directly and briefly. Do not use tools unless strictly necessary."
_FINAL_TURN_HINT = "Step limit reached. Summarize what you did and what remains, without tool calls."

_RESULT_PREVIEW = 4000


class Worker:
    """Processes one prompt at a time for a single role.

    ``invoke`` keeps all conversation state local to the call, so a worker
    holds no per-task state; concurrent tasks still get their own instance
    from ``WorkerPool.checkout``.
    """

    def __init__(self, role: WorkerRole, llm: LLMAdapter, tools: Optional[ToolRegistry] = None):
        self.role = role
        self.llm = llm
        self.tools = tools

    @property
    def name(self) -> str:
        return self.role.name

    def _system_prompt(self, reasoning: bool) -> str:
        parts = [
            f"## Role: {self.role.display_name}",
            f"Description: {self.role.description}",
            "",
            self.role.persona,
            "",
            _REASONING_HINT if reasoning else _DIRECT_HINT,
        ]
        if self.tools is not None and self.tools.names:
            parts += ["", "Available tools: " + ", ".join(self.tools.names)]
        return "\n".join(parts)

    def invoke(
        self,
        prompt: str,
        *,
        reasoning: bool = True,
        max_steps: int = 8,
        on_step: Optional[StepCallback] = None,
        cancel: Optional[threading.Event] = None,
    ) -> WorkerResult:
        """Run the tool-calling loop for ``prompt``; errors from the model propagate.

        When ``cancel`` is set the loop stops before its next model call or
        tool call and raises ``TaskCancelledError``.
        """
        messages: List[Dict[str, Any]] = [
            {"role": "system", "content": self._system_prompt(reasoning)},
            {"role": "user", "content": prompt},
        ]
        trace: List[str] = []
        steps: List[ExecutionStep] = []
        tokens = 0
        schemas = self.tools.schemas if self.tools is not None else []

        if reasoning:
            trace.append("Analyzing task and generating execution plan")

        text = ""
        max_steps = max(1, max_steps)
        for turn in range(max_steps):
            last_turn = turn == max_steps - 1
            if last_turn and turn > 0:
                messages.append({"role": "user", "content": _FINAL_TURN_HINT})
            self._check_cancel(cancel)
            response = self.llm.chat(messages, tools=None if last_turn else (schemas or None))
            tokens += response.total_tokens
            if reasoning and response.reasoning_content:
                trace.append(response.reasoning_content.strip())

            if not response.has_tool_calls():
                text = response.content or ""
                break

            assistant_msg = {
                "role": "assistant",
                "content": response.content or "",
                "tool_calls": [
                    {
                        "id": tc.id,
                        "type": "function",
                        "function": {"name": tc.name, "arguments": json.dumps(tc.arguments)},
                    }
                    for tc in response.tool_calls
                ],
            }
            # Reasoner models require reasoning_content echoed on assistant turns
            if response.reasoning_content is not None:
                assistant_msg["reasoning_content"] = response.reasoning_content
            messages.append(assistant_msg)
            for tc in response.tool_calls:
                self._check_cancel(cancel)
                step = self._run_tool(tc.name, tc.arguments)
                steps.append(step)
                if on_step is not None:
                    on_step(step.step)
                messages.append({
                    "role": "tool",
                    "tool_call_id": tc.id,
                    "content": step.result[:_RESULT_PREVIEW],
                })

        return WorkerResult(
            text=text,
            reasoning=trace,
            steps=steps,
            tokens=tokens,
            role=self.role.name,
        )

    def _check_cancel(self, cancel: Optional[threading.Event]) -> None:
        if cancel is not None and cancel.is_set():
            _log.info("Worker %s: call cancelled", self.role.name)
            raise TaskCancelledError(self.role.name)

    def _run_tool(self, name: str, arguments: Dict[str, Any]) -> ExecutionStep:
        label = f"{name}({_brief_args(arguments)})"
        try:
            output = self.tools.execute(name, arguments)
            success = True
        except DevcrewError as e:
            _log.info("Worker %s: tool %s failed: %s", self.role.name, name, e)
            output = f"Error: {e}"
            success = False
        return ExecutionStep(
            step=label,
            result=output,
            success=success,
            tool=name,
            parameters=arguments,
        )


def _brief_args(arguments: Dict[str, Any], limit: int = 60) -> str:
    parts = []
    for key, value in arguments.items():
        if key == "content":
            continue
        parts.append(f"{key}={str(value)[:limit]}")
    return ", ".join(parts)


def create_worker_for_role(
    role: WorkerRole,
    config: "Config",
    project_root: Optional[str] = None,
    preset: Optional["ModelPreset"] = None,
) -> Worker:
    """Build an independent Worker with its own LLMAdapter and ToolRegistry."""
    preset = preset or config.get_active_preset()
    llm = LLMAdapter(**preset.get_llm_kwargs())

    tools = ToolRegistry(
        project_root=project_root or config.project_root or ".",
        blocked_commands=config.blocked_commands,
        command_timeout=config.command_timeout,
        commit_prefix=config.commit_prefix,
    )
    tools.restrict_to(role.capabilities)

    return Worker(role=role, llm=llm, tools=tools)
