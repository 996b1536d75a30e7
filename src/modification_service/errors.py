"""Error taxonomy for the modification engine."""

from enum import Enum


class ErrorKind(str, Enum):
    """Failure kinds carried by per-layer results."""

    LOW_RELEVANCE = "low_relevance"
    REPLY_MALFORMED = "reply_malformed"
    VALIDATION_FAILED = "validation_failed"
    CACHE_UNAVAILABLE = "cache_unavailable"
    SERVICE_UNAVAILABLE = "service_unavailable"
    PATH_REJECTED = "path_rejected"
    WRITE_FAILED = "write_failed"
    NO_TARGETS = "no_targets"
    NO_CHANGES = "no_changes"
    PIPELINE_FAILED = "pipeline_failed"


class ModificationError(Exception):
    """Base class for engine errors."""

    kind: ErrorKind = ErrorKind.PIPELINE_FAILED


class ReasoningServiceError(ModificationError):
    """The reasoning service failed, timed out or returned nothing."""

    kind = ErrorKind.SERVICE_UNAVAILABLE


class ReplyFormatError(ModificationError):
    """A reasoning reply did not have the expected structure."""

    kind = ErrorKind.REPLY_MALFORMED

    def __init__(self, message: str, raw_reply: str = ""):
        super().__init__(message)
        self.raw_reply = raw_reply


class PathPolicyError(ModificationError):
    """A write target resolved outside the allowed area."""

    kind = ErrorKind.PATH_REJECTED


class CacheBackendError(ModificationError):
    """The key-value cache is unreachable or returned an error."""

    kind = ErrorKind.CACHE_UNAVAILABLE
