"""Exception hierarchy shared by the analyzer and its collaborators."""

from __future__ import annotations


class LazyDocsError(Exception):
    """Base class for all lazydocs errors."""


class PathNotFound(LazyDocsError):
    """Analysis root or a subdirectory does not exist."""


class UnreadableFile(LazyDocsError):
    """A source file could not be read."""


class ParseFailure(LazyDocsError):
    """Structural extraction failed for a single file."""

    def __init__(self, path: str, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path
        self.message = message


class ParseFatal(ParseFailure):
    """The parser (or its delegate process) gave up on a file."""


class ConfigParseError(LazyDocsError):
    """A configuration file is not valid JSON or has the wrong shape."""


class ConfigError(LazyDocsError):
    """A configuration value failed validation."""


class ModelError(LazyDocsError):
    """Error communicating with the model."""


class AuthenticationError(ModelError):
    """The API key was rejected."""


class RateLimitError(ModelError):
    """The API refused the request because of rate limiting."""


class PayloadTooLargeError(ModelError):
    """The prompt exceeded what the endpoint accepts."""


class ModelConnectionError(ModelError):
    """The endpoint could not be reached or timed out."""


class GitError(LazyDocsError):
    """A git command failed."""
