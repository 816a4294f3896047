"""Access control error taxonomy.

All of these are programming or configuration errors. They are raised
synchronously and must be fixed by the caller, not retried.
"""


class AclError(Exception):
    """Base class for access control errors."""

    def __init__(self, message: str, code: str = "acl_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class PrincipalConflict(AclError):
    """Raised when setting an agent on a group permission or vice versa."""

    def __init__(self, message: str):
        super().__init__(message, "principal_conflict")


class IdentityMismatch(AclError):
    """Raised when merging permissions with different identity keys."""

    def __init__(self, message: str = "Cannot merge permissions with different principal, resource url or access type"):
        super().__init__(message, "identity_mismatch")


class IncompleteIdentity(AclError):
    """Raised when a permission lacks a principal or resource url."""

    def __init__(self, message: str = "Cannot compute identity key of an incomplete permission"):
        super().__init__(message, "incomplete_identity")


class MissingResource(AclError):
    """Raised when mutating a permission set that has no resource url."""

    def __init__(self, message: str = "Cannot add a permission to a PermissionSet with no resource url"):
        super().__init__(message, "missing_resource")


class InvalidArgument(AclError):
    """Raised for an empty principal id, empty mode list or unknown mode."""

    def __init__(self, message: str):
        super().__init__(message, "invalid_argument")


class MissingDependency(AclError):
    """Raised when a codec, store, loader or target url is not configured."""

    def __init__(self, message: str):
        super().__init__(message, "missing_dependency")


class PolicyDocumentError(AclError):
    """Raised when a policy or group document cannot be parsed."""

    def __init__(self, message: str):
        super().__init__(message, "invalid_document")
