"""Tool registry: dict-based dispatch of the tools a worker may call."""
from typing import Any, Callable, Dict, Iterable, List

from ..errors import ConfigurationError, ToolError
from .file_ops import FileOps
from .shell import ShellExecutor
from .git_ops import GitOps


class _ToolEntry:
    """Single tool registration: handler + schema."""
    __slots__ = ("handler", "schema")

    def __init__(self, handler: Callable, schema: dict):
        self.handler = handler
        self.schema = schema


def _schema(name: str, description: str, properties: dict,
            required: list) -> dict:
    """Build an OpenAI-compatible function schema."""
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": properties,
                "required": required,
            },
        },
    }


# Shorthand helpers for property definitions
_S = lambda desc, **kw: {"type": "string", "description": desc, **kw}
_I = lambda desc, **kw: {"type": "integer", "description": desc, **kw}


class ToolRegistry:
    def __init__(self, project_root: str, blocked_commands: list = None,
                 command_timeout: int = 30, commit_prefix: str = "devcrew: "):
        self.file_ops = FileOps(project_root)
        self.shell = ShellExecutor(project_root, blocked_commands, command_timeout)
        self.git = GitOps(project_root, commit_prefix=commit_prefix)
        self._tools: Dict[str, _ToolEntry] = {}
        self._register_tools()

    def _register_tools(self):
        """Register all tools. Single source of truth for schema + handler."""
        f = self.file_ops
        g = self.git
        T = _ToolEntry
        S = _schema

        # ── File operations ──
        self._tools["read_file"] = T(
            handler=lambda **a: f.read_file(a["path"], a.get("start_line"), a.get("end_line")),
            schema=S("read_file",
                     "Read file contents with line numbers. Supports optional line range.",
                     {"path": _S("File path relative to project root"),
                      "start_line": _I("Start line (1-indexed)"),
                      "end_line": _I("End line (inclusive)")},
                     ["path"]),
        )
        self._tools["write_file"] = T(
            handler=lambda **a: f.write_file(a["path"], a["content"]),
            schema=S("write_file", "Create or overwrite a file with the full content.",
                     {"path": _S("File path"),
                      "content": _S("Full file content")},
                     ["path", "content"]),
        )
        self._tools["list_directory"] = T(
            handler=lambda **a: f.list_directory(a.get("path", "."), a.get("max_depth", 2)),
            schema=S("list_directory", "List files/dirs in tree format.",
                     {"path": _S("Directory path (default: .)", default="."),
                      "max_depth": _I("Max depth (default 2)", default=2)},
                     []),
        )
        self._tools["search_files"] = T(
            handler=lambda **a: f.search_files(a["pattern"], a.get("path", "."),
                                               a.get("max_results", 80)),
            schema=S("search_files", "Regex search across project files.",
                     {"pattern": _S("Search pattern (regex)"),
                      "path": _S("Search scope (default: .)", default="."),
                      "max_results": _I("Max result lines (default 80)", default=80)},
                     ["pattern"]),
        )

        # ── Command execution ──
        self._tools["run_command"] = T(
            handler=lambda **a: self.shell.execute(a["command"]),
            schema=S("run_command", "Run a shell command in the project root (tests, builds).",
                     {"command": _S("Shell command")},
                     ["command"]),
        )

        # ── Git ──
        self._tools["git_status"] = T(
            handler=lambda **a: g.status_short(),
            schema=S("git_status", "Show short git status.", {}, []),
        )
        self._tools["git_diff"] = T(
            handler=lambda **a: g.diff(a.get("path")),
            schema=S("git_diff", "Show the working-tree diff, optionally for one path.",
                     {"path": _S("Limit the diff to this path")},
                     []),
        )
        self._tools["git_log"] = T(
            handler=lambda **a: g.get_log(a.get("n", 10)),
            schema=S("git_log", "Show recent commits.",
                     {"n": _I("Number of commits (default 10)", default=10)},
                     []),
        )
        self._tools["git_commit"] = T(
            handler=lambda **a: g.commit(a["message"]),
            schema=S("git_commit", "Stage and commit current changes.",
                     {"message": _S("Commit message")},
                     ["message"]),
        )

    # ── Capability restriction ──

    @property
    def names(self) -> List[str]:
        return list(self._tools)

    def restrict_to(self, allowed: Iterable[str]) -> None:
        """Keep only ``allowed`` tools. Unknown names are a configuration error."""
        allowed = list(allowed)
        unknown = [name for name in allowed if name not in self._tools]
        if unknown:
            raise ConfigurationError(f"Unknown tools in capability set: {', '.join(unknown)}")
        self._tools = {name: self._tools[name] for name in allowed}

    @property
    def schemas(self) -> List[dict]:
        return [entry.schema for entry in self._tools.values()]

    def execute(self, name: str, arguments: Dict[str, Any]) -> str:
        entry = self._tools.get(name)
        if entry is None:
            raise ToolError(name, "not available for this worker")
        try:
            return entry.handler(**arguments)
        except KeyError as e:
            raise ToolError(name, f"missing argument {e}")
        except TypeError as e:
            raise ToolError(name, f"bad arguments: {e}")
