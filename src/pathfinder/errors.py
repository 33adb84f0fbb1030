"""Exceptions raised by the Pathfinder SDK.

Conversation-flow problems (language not selected, unknown language) are
reported as plain ``ValueError`` so that callers can map them the same way
as other bad-request conditions.  The classes here cover the boundary with
the remote model API and startup configuration.
"""


class PathfinderError(Exception):
    """Base class for SDK-specific errors."""


class GatewayError(PathfinderError):
    """A remote completion or speech call failed.

    The original provider exception is chained as ``__cause__``.
    """


class MissingCredentialError(PathfinderError):
    """The API key required to reach the remote model API is not configured."""
