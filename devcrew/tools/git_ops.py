"""Git integration: status, diff, log, commit."""
import fnmatch
import subprocess
from pathlib import Path
from typing import Optional

from ..logger import get_logger

_log = get_logger(__name__)


class GitOps:
    SENSITIVE_PATTERNS = [
        ".env*",
        "*.key",
        "*.pem",
        "*.p12",
        "*credentials*",
        "*secret*",
        "id_rsa*",
        "id_ed25519*",
    ]

    def __init__(self, project_root: str, commit_prefix: str = "devcrew: "):
        self.root = Path(project_root).resolve()
        self.prefix = commit_prefix

    @property
    def available(self) -> bool:
        return (self.root / ".git").exists()

    def _run(self, *args) -> subprocess.CompletedProcess:
        return subprocess.run(
            ["git"] + list(args), capture_output=True, text=True,
            cwd=str(self.root), timeout=15,
        )

    def status_short(self) -> str:
        if not self.available:
            return "(not a git repo)"
        return self._run("status", "--short").stdout.strip() or "(clean)"

    def diff(self, path: Optional[str] = None) -> str:
        if not self.available:
            return "(not a git repo)"
        args = ["diff", "--stat", "--patch"]
        if path:
            args += ["--", path]
        out = self._run(*args).stdout.strip()
        if len(out) > 8000:
            out = out[:8000] + "\n...(truncated)..."
        return out or "(no changes)"

    def get_log(self, n: int = 10) -> str:
        if not self.available:
            return "(not a git repo)"
        return self._run("log", "--oneline", f"-{n}", "--no-decorate").stdout.strip() or "(no commits)"

    def _is_sensitive_path(self, path: str) -> bool:
        """Return True when a path looks like it may contain secrets."""
        normalized = path.lower()
        filename = Path(path).name.lower()
        return any(
            fnmatch.fnmatch(normalized, pattern) or fnmatch.fnmatch(filename, pattern)
            for pattern in self.SENSITIVE_PATTERNS
        )

    def commit(self, message: str) -> str:
        """Stage non-sensitive changes and commit them with the configured prefix."""
        if not self.available:
            return "(not a git repo)"

        modified = self._run("diff", "--name-only").stdout.splitlines()
        untracked = self._run("ls-files", "--others", "--exclude-standard").stdout.splitlines()
        candidates = list(dict.fromkeys([*modified, *untracked]))
        stageable = [p for p in candidates if p and not self._is_sensitive_path(p)]
        if not stageable:
            return "(nothing to commit)"

        if self._run("add", "--", *stageable).returncode != 0:
            return "git add failed"
        r = self._run("commit", "-m", f"{self.prefix}{message}")
        if r.returncode != 0:
            _log.warning("git commit failed: %s", r.stderr.strip()[:200])
            return f"git commit failed: {r.stderr.strip()[:200]}"
        sha = self._run("rev-parse", "--short", "HEAD").stdout.strip()
        return f"Committed {sha} ({len(stageable)} files)"
