"""Exception hierarchy for the canon engine.

Validation findings (conflicts and warnings) are never raised; they are
returned as data. Exceptions are reserved for storage failures that the
caller has to see and for illegal operator actions.
"""


class CanonForgeError(Exception):
    """Base class for all canonforge errors."""


class CatalogUnavailableError(CanonForgeError):
    """The campaign catalog query failed.

    Discovery classification depends on the catalog, so the validator and
    the scanner propagate this instead of degrading.
    """


class EntityPersistError(CanonForgeError):
    """The primary entity insert (or stub update) failed; the commit is aborted."""


class InvalidTransitionError(CanonForgeError):
    """An operator action is not allowed from the current review state."""


class CommitBlockedError(CanonForgeError):
    """A commit was attempted while discoveries or conflicts are still pending."""
