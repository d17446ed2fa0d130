"""Exceptions raised by the localizer core."""


class LocalizerError(Exception):
    """Base class for every error the core reports to its caller."""


class ValidationError(LocalizerError):
    """An uploaded file (or an export request) failed validation."""

    def __init__(self, message: str, filename: str = ""):
        self.filename = filename
        super().__init__(f"{filename}: {message}" if filename else message)


class DuplicateKeyError(LocalizerError):
    """A key with this dotted path already exists."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f'Key "{key}" already exists')


class UnknownKeyError(LocalizerError):
    """No key with this dotted path exists."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f'Key "{key}" does not exist')


class OracleError(LocalizerError, ConnectionError):
    """The translation service failed for one (text, source, target) call."""


class RunValidationError(LocalizerError):
    """A translation run was refused before any oracle call."""


class NoSourceLanguageError(RunValidationError):
    def __init__(self):
        super().__init__("No source language selected")


class NoTargetLanguagesError(RunValidationError):
    def __init__(self):
        super().__init__("No target languages selected")


class NothingToTranslateError(RunValidationError):
    def __init__(self, message: str = "No keys need translating for the selected languages"):
        super().__init__(message)
