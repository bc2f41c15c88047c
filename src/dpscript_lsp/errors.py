class DPScriptError(Exception):
    """Base class for errors raised by the language server."""


class CompilerNotRunningError(DPScriptError):
    """Raised when a command needs the persistent compiler and none is running."""


class CompilerTimeoutError(DPScriptError):
    """Raised when the compiler does not respond within the configured timeout."""


class ReportError(DPScriptError):
    """Raised when a batch report file exists but cannot be parsed."""
