"""errors.py - Exceptions raised while anonymizing DICOM files."""

from typing import Optional


class AnonymizerError(Exception):
    """Base class for every failure that aborts an anonymization run."""


class ParseError(AnonymizerError):
    """The input file is missing, unreadable, or not valid DICOM."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read DICOM file {path}: {reason}")


class MissingAttributeError(AnonymizerError):
    """A target attribute is absent from the dataset."""

    def __init__(self, path: str, keyword: str, tag: tuple[int, int]) -> None:
        self.path = path
        self.keyword = keyword
        self.tag = tag
        super().__init__(
            f"{path}: required attribute {keyword} "
            f"({tag[0]:04X},{tag[1]:04X}) is missing"
        )


class WriteError(AnonymizerError):
    """The output file could not be created or serialized."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot write DICOM file {path}: {reason}")


class ArgumentError(AnonymizerError):
    """Malformed command-line input, e.g. mismatched input/output lists."""

    def __init__(self, message: str, option: Optional[str] = None) -> None:
        self.option = option
        super().__init__(message if option is None else f"{option}: {message}")
