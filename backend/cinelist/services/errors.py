"""
Typed outcomes of the list/membership/invite operations.

Every expected failure is one of these classes. ``code`` is the stable kind
the API returns in its error envelope and the fan-out returns per list.
"""


class ListServiceError(Exception):
    """Base class for all expected, user-facing failures."""

    code = "LIST_SERVICE_ERROR"


class ListNotFoundError(ListServiceError):
    """Raised when the list does not exist (or the caller's view of it is stale)."""

    code = "LIST_NOT_FOUND"


class NotAMemberError(ListServiceError):
    """Raised when a user is not owner/collaborator of the list."""

    code = "NOT_A_MEMBER"


class NotListOwnerError(ListServiceError):
    """Raised when an owner-only operation is attempted by someone else."""

    code = "NOT_LIST_OWNER"


class AlreadyMemberError(ListServiceError):
    """Raised when the user is already on the roster."""

    code = "ALREADY_MEMBER"


class CapacityExceededError(ListServiceError):
    """Raised when the roster is already at MAX_LIST_MEMBERS."""

    code = "CAPACITY_EXCEEDED"


class DuplicatePendingInviteError(ListServiceError):
    """Raised when a pending direct invite to the same user already exists."""

    code = "DUPLICATE_PENDING_INVITE"


class InviteNotFoundError(ListServiceError):
    """Raised for unknown invite ids and unknown, revoked or expired link codes."""

    code = "INVITE_NOT_FOUND"


class InviteAlreadyResolvedError(ListServiceError):
    """Raised when a direct invite is no longer pending."""

    code = "INVITE_ALREADY_RESOLVED"


class NotInviteeError(ListServiceError):
    """Raised when someone other than the invitee acts on a direct invite."""

    code = "NOT_INVITEE"


class CannotRemoveOwnerError(ListServiceError):
    """Raised when the owner row would be removed outside transfer/deletion."""

    code = "CANNOT_REMOVE_OWNER"


class CannotDeleteDefaultListError(ListServiceError):
    """Raised on any attempt to delete a default list."""

    code = "CANNOT_DELETE_DEFAULT_LIST"


class MovieNotFoundError(ListServiceError):
    """Raised when the movie is not in the list."""

    code = "MOVIE_NOT_FOUND"


class InvalidNoteError(ListServiceError):
    """Raised when a note exceeds NOTE_MAX_LENGTH."""

    code = "INVALID_NOTE"


class StorageConflictError(ListServiceError):
    """
    Raised when a compare-and-set on the roster (or an invite transition) lost
    a race. Retried by run_in_transaction; surfaced only once retries are spent.
    """

    code = "STORAGE_CONFLICT"


class TransientStoreError(ListServiceError):
    """Raised when the backing store could not be reached. Never retried here."""

    code = "TRANSIENT_STORE_ERROR"
