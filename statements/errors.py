"""
Error Types

This module contains the exceptions raised while accepting uploads and
extracting transactions. Messages carried by ExtractionError are shown
to the user as-is, so they are written in French like the rest of the UI.
"""

GENERIC_EXTRACTION_MESSAGE = "Échec de l'extraction des données. Veuillez réessayer."
TRUNCATED_MESSAGE = (
    "La réponse de l'IA a été coupée et n'a pas pu être récupérée. "
    "Le fichier est peut-être trop volumineux."
)
INVALID_STRUCTURE_MESSAGE = "Structure de données invalide reçue de l'IA."
PDF_ONLY_MESSAGE = "Veuillez déposer uniquement des fichiers PDF."


class StatementError(Exception):
    """Base class for every error raised by the statements package."""


class ConfigurationError(StatementError):
    """Raised when a required setting (the Gemini API key) is missing."""


class UploadRejectedError(StatementError):
    """Raised when an upload batch contains no PDF file at all."""

    def __init__(self, file_names):
        self.file_names = list(file_names)
        super().__init__(PDF_ONLY_MESSAGE)


class ExtractionError(StatementError):
    """
    A failed extraction for one document.

    The message ends up on the document (status 'error') and never
    affects the other documents of the batch.
    """

    def __init__(self, message=GENERIC_EXTRACTION_MESSAGE):
        super().__init__(message or GENERIC_EXTRACTION_MESSAGE)

    @property
    def message(self):
        return self.args[0]


class ResponseParseError(ExtractionError):
    """The service answered, but its payload could not be turned into rows."""


class TruncatedResponseError(ResponseParseError):
    def __init__(self, message=TRUNCATED_MESSAGE):
        super().__init__(message)


class InvalidResponseError(ResponseParseError):
    def __init__(self, message=INVALID_STRUCTURE_MESSAGE):
        super().__init__(message)
