"""
Errors raised at the data and model loading boundaries
"""


class ReferenceDataLoadError(Exception):
    """Position table or answer key could not be fetched or parsed."""


class ModelLoadError(Exception):
    """Base class for ability model loading failures."""

    def __init__(self, model_key: str, message: str):
        super().__init__(f"{model_key}: {message}")
        self.model_key = model_key


class ModelNotFound(ModelLoadError):
    """No artifact exists for the requested key."""


class ModelValidationFailed(ModelLoadError):
    """Artifact exists but could not be read or failed the probe."""
