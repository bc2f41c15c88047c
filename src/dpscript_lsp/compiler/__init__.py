from dpscript_lsp.compiler.batch import BatchCompiler, read_report
from dpscript_lsp.compiler.persistent import COMMAND_TERMINATOR, PersistentCompiler

__all__ = [
    "COMMAND_TERMINATOR",
    "BatchCompiler",
    "PersistentCompiler",
    "read_report",
]
