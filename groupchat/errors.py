from __future__ import annotations


class GroupChatError(Exception):
    """Base class for group chat errors."""


class NotFound(GroupChatError, LookupError):
    """Unknown session, participant or message."""


class InvalidArgument(GroupChatError, ValueError):
    """Bad input at a service or generation boundary."""


class UpstreamFailure(GroupChatError):
    """A model provider failed, timed out or returned nothing usable."""


class ConfigurationMissing(GroupChatError):
    """No API key configured for the requested provider."""
