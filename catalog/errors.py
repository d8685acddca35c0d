from rest_framework import status
from rest_framework.exceptions import APIException


class CatalogError(APIException):
    """Base class for every error the catalog reports to API clients.

    Subclasses carry the HTTP status they map to. ``extra`` holds additional
    keys merged into the JSON error body by the exception handler.
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal error."
    default_code = "error"

    def __init__(self, detail=None, code=None, **extra):
        super().__init__(detail=detail, code=code)
        self.extra = extra


class ValidationError(CatalogError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request."
    default_code = "invalid"


class Unauthorized(CatalogError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Unauthorized"
    default_code = "not_admin"


class NotFound(CatalogError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Video not found"
    default_code = "not_found"


class ConfigurationError(CatalogError):
    default_detail = "Server is missing required configuration."
    default_code = "not_configured"

    def __init__(self, variable, detail=None):
        super().__init__(
            detail=detail or f"Missing {variable} - please configure the {variable} environment variable",
            suggestion=f"Set {variable} in the environment or the .env file and retry.",
        )
        self.variable = variable


class SchemaError(CatalogError):
    default_detail = "The database schema is out of date."
    default_code = "schema"

    def __init__(self, column, detail=None):
        super().__init__(
            detail=detail or f"{column} column does not exist",
            errorCode="COLUMN_MISSING",
            suggestion=f"The {column} column needs to be added to your database. "
                       "Run: python manage.py migrate catalog",
        )
        self.column = column


class ProviderError(CatalogError):
    default_detail = "Vimeo API error."
    default_code = "provider"

    def __init__(self, detail=None, upstream_status=None):
        super().__init__(detail=detail, upstreamStatus=upstream_status)
        self.upstream_status = upstream_status


class AuthError(ProviderError):
    default_detail = "Invalid Vimeo token. Please check your VIMEO_TOKEN."
    default_code = "provider_auth"


class BlobStoreError(CatalogError):
    default_detail = "Blob store request failed."
    default_code = "blob_store"
