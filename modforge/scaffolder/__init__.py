"""modforge scaffolder -- renders, assembles, and commits project files.

Quick usage::

    from modforge.scaffolder import CommitPolicy, FileCommitter, ScaffoldAssembler

    files = ScaffoldAssembler().assemble(resolved, context)
    result = await FileCommitter().commit(files, "/tmp/my_app", CommitPolicy())
"""

from modforge.scaffolder.assembler import (
    AssemblyResult,
    GeneratedFile,
    ScaffoldAssembler,
)
from modforge.scaffolder.committer import (
    CommitPolicy,
    CommitResult,
    FileCommitter,
    WriteOutcome,
)
from modforge.scaffolder.templates import TemplateRenderer

__all__ = [
    "AssemblyResult",
    "CommitPolicy",
    "CommitResult",
    "FileCommitter",
    "GeneratedFile",
    "ScaffoldAssembler",
    "TemplateRenderer",
    "WriteOutcome",
]
