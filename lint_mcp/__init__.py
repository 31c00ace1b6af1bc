"""Change-scoped golangci-lint runner."""

__version__ = "1.0.0"
