"""Extract file changes from worker output and write them into the project."""

import re
from dataclasses import dataclass, field
from typing import List, Tuple

from ..errors import FileOperationError
from ..logger import get_logger
from ..tools.file_ops import FileOps
from .report import RunReport

_log = get_logger(__name__)

_FENCE_RE = re.compile(r"```([\w+-]*)[^\n]*\n(.*?)```", re.DOTALL)

# First line of a block naming its target file: // path, # path, /* path */, <!-- path -->
_PATH_LINE_RE = re.compile(
    r"^\s*(?://|#|/\*|<!--|--)\s*(?:file:\s*)?([\w./-]+\.[\w]+|[\w./-]*/[\w.-]+)\s*(?:\*/|-->)?\s*$",
    re.IGNORECASE,
)


@dataclass
class CodeBlock:
    file_path: str
    content: str
    language: str = ""


@dataclass
class ApplyResult:
    written: List[str] = field(default_factory=list)
    errors: List[Tuple[str, str]] = field(default_factory=list)  # (path, message)

    @property
    def ok(self) -> bool:
        return not self.errors


def extract_code_blocks(text: str) -> List[CodeBlock]:
    """Fenced blocks whose first line is a comment naming a file path.

    The path line itself is not part of the written content. Blocks without
    one are explanation snippets and are skipped.
    """
    blocks = []
    for m in _FENCE_RE.finditer(text or ""):
        language, body = m.group(1), m.group(2)
        lines = body.split("\n")
        while lines and not lines[0].strip():
            lines.pop(0)
        if not lines:
            continue
        path_match = _PATH_LINE_RE.match(lines[0])
        if not path_match:
            continue
        content = "\n".join(lines[1:]).rstrip() + "\n"
        blocks.append(CodeBlock(file_path=path_match.group(1), content=content, language=language))
    return blocks


def collect_changes(report: RunReport) -> List[CodeBlock]:
    """Code blocks from the final output of each completed task, in task order.

    A later block for the same path replaces an earlier one.
    """
    by_path = {}
    for task in report.completed_tasks:
        for block in extract_code_blocks(task.output or ""):
            by_path.pop(block.file_path, None)
            by_path[block.file_path] = block
    return list(by_path.values())


def apply_changes(report: RunReport, file_ops: FileOps) -> ApplyResult:
    """Write every collected block through ``file_ops``; failures are collected."""
    result = ApplyResult()
    for block in collect_changes(report):
        try:
            file_ops.write_file(block.file_path, block.content)
        except (FileOperationError, OSError) as e:
            _log.warning("Could not apply change to %s: %s", block.file_path, e)
            result.errors.append((block.file_path, str(e)))
            continue
        result.written.append(block.file_path)
    return result
