"""Shell tool for workers: guarded command execution in the project root."""

import os
import re
import subprocess
from pathlib import Path

from ..errors import ShellBlockedError, ShellTimeoutError
from ..logger import get_logger

_log = get_logger(__name__)


def _clip(text: str, limit: int) -> str:
    """Keep the head and tail of long output."""
    if len(text) <= limit:
        return text
    half = limit // 2
    return text[:half] + "\n...(truncated)...\n" + text[-half:]


class ShellExecutor:
    """Runs a worker's shell commands in the project root.

    Commands matching the configured blocklist or a known destructive
    pattern raise ``ShellBlockedError`` instead of running.
    """

    # Regex signatures for high-risk commands and common exploit chains.
    DANGEROUS_PATTERNS = [
        r"\brm\b\s+-[^\s;|&]*r[^\s;|&]*f[^\s;|&]*\s+/(?:\s|$|\*)",
        r"\b(?:mkfs(?:\.[a-z0-9_+\-]+)?|fdisk|parted|sfdisk|wipefs)\b",
        r"\bdd\b[^\n;|&]*\bif\s*=",
        r"\bchmod\b\s+(?:-[^\s]+\s+)?0?777\b",
        r":\s*\(\s*\)\s*\{\s*:\s*\|\s*:\s*&\s*\}\s*;\s*:",
        r"(?:>|>>)\s*/dev/sd[a-z]\d*",
        r"\bcurl\b[^\n;|&]*\|\s*(?:sh|bash|zsh)\b",
        r"\bwget\b[^\n;|&]*\|\s*(?:sh|bash|zsh)\b",
        r"\beval\b\s+",
    ]

    MAX_STDOUT = 8000
    MAX_STDERR = 4000

    def __init__(self, project_root: str, blocked_commands: list = None, timeout: int = 30):
        self.project_root = Path(project_root).resolve()
        self.timeout = timeout
        self.blocked = [b for b in (blocked_commands or []) if b.strip()]
        self._dangerous_regexes = [
            re.compile(pattern, re.IGNORECASE) for pattern in self.DANGEROUS_PATTERNS
        ]

    @staticmethod
    def _canonicalize_command(command: str) -> str:
        """Normalize shell syntax noise so quoted variants are easier to match."""
        normalized = command.lower().replace("\\\n", " ")
        normalized = re.sub(r"\$\{?\s*ifs\s*\}?", " ", normalized)
        normalized = re.sub(r"[\'\"`\\]", "", normalized)
        normalized = re.sub(r"\s+", " ", normalized)
        return normalized.strip()

    def get_block_reason(self, command: str):
        canonical = self._canonicalize_command(command)
        compact = re.sub(r"\s+", "", canonical)
        for blocked in self.blocked:
            blocked_canonical = self._canonicalize_command(blocked)
            if blocked_canonical in canonical or re.sub(r"\s+", "", blocked_canonical) in compact:
                return f"matches blocked command '{blocked}'"
        for pattern in self._dangerous_regexes:
            if pattern.search(command) or pattern.search(canonical):
                return f"matches dangerous pattern '{pattern.pattern}'"
        return None

    def execute(self, command: str) -> str:
        block_reason = self.get_block_reason(command)
        if block_reason:
            _log.warning("Command blocked: %s", block_reason)
            raise ShellBlockedError(block_reason)

        _log.debug("Executing command: %s", command[:100])

        try:
            result = subprocess.run(
                ["bash", "-c", command],
                capture_output=True,
                text=True,
                timeout=self.timeout,
                cwd=str(self.project_root),
                env={**os.environ, "TERM": "dumb"},
            )
        except subprocess.TimeoutExpired:
            raise ShellTimeoutError(self.timeout)

        parts = []
        if result.stdout:
            parts.append(_clip(result.stdout, self.MAX_STDOUT))
        if result.stderr:
            parts.append("[stderr]\n" + _clip(result.stderr, self.MAX_STDERR))
        if result.returncode != 0:
            parts.append(f"[exit code: {result.returncode}]")
        _log.debug("Command exited with %d", result.returncode)

        return "\n".join(parts).strip() or "(no output)"
