# FILE: backend/vyapar/core/exceptions.py
# Failure classes raised by provider wrappers. Endpoints convert them to HTTP errors.


class ConfigurationError(Exception):
    """A required credential or setting is missing. Raised before any network call."""


class ProviderError(Exception):
    """An external provider answered with a failure or an unusable payload."""


class ImageDecodeError(ValueError):
    """Uploaded bytes could not be decoded as an image."""
