from __future__ import annotations


class DomainError(Exception):
    """Base for errors the services turn into result values."""


class ValidationError(DomainError):
    pass


class NotFoundError(DomainError):
    pass


class ConflictError(DomainError):
    pass


class RemoteError(DomainError):
    """A store / auth / AI / calendar call failed."""


class PreconditionError(DomainError):
    pass
