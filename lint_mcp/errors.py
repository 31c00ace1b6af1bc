from __future__ import annotations


class LintMcpError(RuntimeError):
    pass


class InvalidArgumentError(LintMcpError, ValueError):
    pass


class GitScopeError(LintMcpError):
    pass


class NoChangesFoundError(LintMcpError):
    pass


class NoSourceFilesError(LintMcpError):
    pass


class NoValidPackagesError(LintMcpError):
    pass


class ToolInvocationError(LintMcpError):
    pass


class ToolNotFoundError(LintMcpError):
    pass


class RequestError(LintMcpError):
    pass
