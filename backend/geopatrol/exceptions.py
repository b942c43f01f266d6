"""
GeoPatrol Backend — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions, one per error kind the API reports.
How:   Each exception class carries a client-safe message, an optional context
       dict (logged, never returned), a fixed HTTP status and an error code.
       Global exception handlers (registered in main.py) turn them into JSON.
Who:   Raised by services, repositories and the bearer-token dependency.

Exception Hierarchy:
    GeoPatrolError (base)
    ├── InvalidInputError        → 400 Missing/blank fields, oversized upload
    ├── DuplicateUsernameError   → 400 Username already registered
    ├── MissingPhotoError        → 400 Report submitted without a photo
    ├── UserNotFoundError        → 401 Login for an unknown username
    ├── InvalidCredentialsError  → 401 Wrong password
    ├── MissingTokenError        → 403 No Authorization header
    ├── InvalidTokenError        → 403 Bad signature, malformed or expired token
    └── PersistenceError         → 500 Datastore failure
        └── FileStorageError     → 500 Blob store failure

Client messages keep the wording the mobile app already displays.
"""

from typing import Any, Dict, Optional


class GeoPatrolError(Exception):
    """
    Base exception for all GeoPatrol application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    status_code: int = 500
    code: str = "server_error"
    default_message: str = "Server error"

    def __init__(
        self,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or self.default_message
        self.context = context or {}
        super().__init__(self.message)


class InvalidInputError(GeoPatrolError):
    """
    Raised when a required field is missing or blank.

    HTTP:    400 Bad Request
    Used for both the credential endpoints and report submission; the
    message names which form was incomplete.
    """

    status_code = 400
    code = "invalid_input"
    default_message = "Data tidak lengkap!"

    def __init__(
        self,
        message: Optional[str] = None,
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class DuplicateUsernameError(GeoPatrolError):
    """Username is already taken. HTTP 400."""

    status_code = 400
    code = "duplicate_username"
    default_message = "Username sudah digunakan!"


class MissingPhotoError(GeoPatrolError):
    """A delivery report arrived without photo proof. HTTP 400."""

    status_code = 400
    code = "missing_photo"
    default_message = "Foto wajib diupload!"


class UserNotFoundError(GeoPatrolError):
    """
    Login attempted for a username that does not exist.

    HTTP:    401 Unauthorized
    Note:    Distinct from InvalidCredentialsError on purpose; the app shows
             the two messages differently. `uniform_login_error` collapses
             them when enumeration resistance is wanted.
    """

    status_code = 401
    code = "user_not_found"
    default_message = "Username tidak ditemukan!"


class InvalidCredentialsError(GeoPatrolError):
    """Password did not match the stored hash. HTTP 401."""

    status_code = 401
    code = "invalid_credentials"
    default_message = "Password salah!"


class MissingTokenError(GeoPatrolError):
    """Protected route called without an Authorization header. HTTP 403."""

    status_code = 403
    code = "missing_token"
    default_message = "Token tidak ditemukan"


class InvalidTokenError(GeoPatrolError):
    """
    Bearer token failed verification.

    HTTP:    403 Forbidden
    When:    Bad signature, malformed token, missing claims, or expired.
             There is no revocation list; expiry is the only invalidation.
    """

    status_code = 403
    code = "invalid_token"
    default_message = "Token tidak valid"


class PersistenceError(GeoPatrolError):
    """
    Raised when a datastore operation fails.

    HTTP:    500 Internal Server Error

    Security Note:
        The message returned to the client is always generic.
        Driver errors, SQL, and file paths go into `context`, which is
        logged server-side only.
    """

    status_code = 500
    code = "server_error"
    default_message = "Server error"


class FileStorageError(PersistenceError):
    """
    Raised when the blob store cannot write or remove a photo.

    When:    Disk full, permission denied, directory not writable, I/O error.
    """

    default_message = "Gagal simpan laporan"
