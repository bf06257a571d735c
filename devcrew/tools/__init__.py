from .registry import ToolRegistry
from .file_ops import FileOps
from .git_ops import GitOps
from .shell import ShellExecutor
__all__ = ["ToolRegistry", "FileOps", "GitOps", "ShellExecutor"]
