"""
anonymizer.py - Fixed-field DICOM anonymization.

Overwrites five patient-identifying attributes with fixed substitutes:

    Patient Name        (0010,0010) PN  -> "puripuri^2100"
    Patient ID          (0010,0020) LO  -> "puripuri^2100"
    Patient Birth Date  (0010,0030) DA  -> "200000401"
    Study ID            (0020,0010) SH  -> random 16-digit zero-padded number
    Institution Name    (0008,0080) LO  -> "FooBar Hospital"

Every other element of the dataset is left exactly as it was read.

IMPORTANT LIMITATIONS
---------------------
- Only the five attributes above are touched.  Dates, UIDs, physician
  names, private tags and burned-in annotations are NOT removed.
- The birth date literal is not a valid DA value (nine characters).
- Study IDs come from a non-cryptographic generator.

References
----------
- DICOM PS3.6 data dictionary: https://dicom.nema.org/medical/dicom/current/output/html/part06.html
- pydicom element access: https://pydicom.github.io/pydicom/stable/guides/user/base_element.html
"""

import logging
import os
import random
import struct
from dataclasses import dataclass
from typing import Optional

import pydicom
from pydicom import config as pydicom_config
from pydicom.dataelem import DataElement, RawDataElement
from pydicom.dataset import Dataset
from pydicom.errors import InvalidDicomError

from dicomanon.errors import MissingAttributeError, ParseError, WriteError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Replacement values
# ---------------------------------------------------------------------------

PATIENT_NAME_VALUE = "puripuri^2100"
# Patient ID is written with the Patient Name literal, not an ID of its own.
# Kept as-is until the intended value is confirmed (see DESIGN.md).
PATIENT_ID_VALUE = PATIENT_NAME_VALUE
# Nine characters, not a valid YYYYMMDD date.  Preserved verbatim.
PATIENT_BIRTH_DATE_VALUE = "200000401"
INSTITUTION_NAME_VALUE = "FooBar Hospital"

STUDY_ID_UPPER_BOUND = 100_000_000_000
STUDY_ID_WIDTH = 16


# ---------------------------------------------------------------------------
# Target attributes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TargetAttribute:
    """One attribute overwritten by the anonymizer."""
    label: str
    keyword: str
    tag: tuple[int, int]
    vr: str
    # False for substitutes known not to conform to their VR
    validate: bool = True


@dataclass
class AttributeChange:
    """Record of a single substitution.  *old_value* is None if absent."""
    label: str
    tag: tuple[int, int]
    old_value: Optional[str]
    new_value: str


# Order matters: values are logged and replaced in this sequence.
TARGET_ATTRIBUTES: list[TargetAttribute] = [
    TargetAttribute("Patient Name", "PatientName", (0x0010, 0x0010), "PN"),
    TargetAttribute("Patient ID", "PatientID", (0x0010, 0x0020), "LO"),
    TargetAttribute("Patient Birth Date", "PatientBirthDate", (0x0010, 0x0030), "DA", validate=False),
    TargetAttribute("Study ID", "StudyID", (0x0020, 0x0010), "SH"),
    TargetAttribute("Institution Name", "InstitutionName", (0x0008, 0x0080), "LO"),
]


def generate_study_id(rng: random.Random) -> str:
    """
    Draw a Study ID from *rng*.

    The integer is uniform in [0, STUDY_ID_UPPER_BOUND) and is rendered as a
    zero-padded decimal string of exactly STUDY_ID_WIDTH characters, which
    is also the maximum length of an SH value.  *rng* is advanced once.
    """
    n = rng.randrange(STUDY_ID_UPPER_BOUND)
    return f"{n:0{STUDY_ID_WIDTH}d}"


def replacement_values(rng: random.Random) -> dict[str, str]:
    """Return the new value for every target keyword."""
    return {
        "PatientName": PATIENT_NAME_VALUE,
        "PatientID": PATIENT_ID_VALUE,
        "PatientBirthDate": PATIENT_BIRTH_DATE_VALUE,
        "StudyID": generate_study_id(rng),
        "InstitutionName": INSTITUTION_NAME_VALUE,
    }


def _format_tag(tag: tuple[int, int]) -> str:
    return f"({tag[0]:04X},{tag[1]:04X})"


def anonymize_dataset(
    ds: Dataset,
    rng: random.Random,
    allow_missing: bool = False,
    source: str = "<dataset>",
) -> list[AttributeChange]:
    """
    Overwrite the five target attributes of *ds* **in place**.

    Parameters
    ----------
    ds : Dataset
        The pydicom Dataset to anonymize.
    rng : random.Random
        Generator used for the Study ID.  Advanced exactly once per call.
    allow_missing : bool
        If False, an absent target attribute raises MissingAttributeError
        before anything is modified.  If True, the attribute is created
        with its new value and the old value is reported as None.
    source : str
        Path or label used in log lines and error messages.

    Returns
    -------
    list[AttributeChange]
        One record per target attribute, in TARGET_ATTRIBUTES order.

    Raises
    ------
    MissingAttributeError
        If a target attribute is absent and *allow_missing* is False.
    """
    if not allow_missing:
        for target in TARGET_ATTRIBUTES:
            if target.tag not in ds:
                raise MissingAttributeError(source, target.keyword, target.tag)

    new_values = replacement_values(rng)
    changes: list[AttributeChange] = []

    for target in TARGET_ATTRIBUTES:
        if target.tag in ds:
            old_value: Optional[str] = str(ds[target.tag].value)
        else:
            old_value = None
            logger.debug(
                "%s %s absent in %s; adding it",
                target.keyword, _format_tag(target.tag), source,
            )

        new_value = new_values[target.keyword]
        if target.validate:
            ds.add(DataElement(target.tag, target.vr, new_value))
        else:
            ds.add(DataElement(
                target.tag, target.vr, new_value,
                validation_mode=pydicom_config.IGNORE,
            ))
            logger.debug(
                "%s %r written without %s validation",
                target.keyword, new_value, target.vr,
            )

        shown_old = "<absent>" if old_value is None else old_value
        logger.info("%s: %s -> %s", target.label, shown_old, new_value)
        changes.append(AttributeChange(target.label, target.tag, old_value, new_value))

    return changes


_UNDEFINED_LENGTH = 0xFFFFFFFF


def _check_complete(ds: Dataset, path: str) -> None:
    """
    Reject a dataset read from a truncated file.

    dcmread stops quietly at end of file, so a cut file shows up as no
    elements at all, as an element whose value is shorter than its declared
    length, or as stray header bytes after the last complete element.
    """
    if len(ds) == 0:
        raise ParseError(path, "no data elements after the file meta information")

    end = 0
    other_tells: list[Optional[int]] = []
    for elem in ds.elements():
        if not isinstance(elem, RawDataElement) or elem.length == _UNDEFINED_LENGTH:
            other_tells.append(getattr(elem, "file_tell", None))
            continue
        if elem.value is not None and len(elem.value) < elem.length:
            tag = _format_tag((elem.tag.group, elem.tag.element))
            raise ParseError(
                path,
                f"file truncated in element {tag}: "
                f"expected {elem.length} bytes, found {len(elem.value)}",
            )
        end = max(end, elem.value_tell + elem.length)

    # The end of file is only known when a defined-length element is last.
    if any(tell is None or tell > end for tell in other_tells):
        return
    size = os.path.getsize(path)
    if size != end:
        raise ParseError(path, f"{size - end} unparsed byte(s) after the last complete element")


def read_dataset(path: str) -> Dataset:
    """
    Parse the DICOM file at *path*.

    Raises
    ------
    ParseError
        If the file is missing, unreadable, truncated, or not a DICOM
        Part 10 file.
    """
    logger.info("[START] read %s", path)
    try:
        ds = pydicom.dcmread(path)
    except (OSError, EOFError, InvalidDicomError, struct.error) as exc:
        raise ParseError(path, str(exc)) from exc
    _check_complete(ds, path)
    logger.info("[END] read %s", path)
    return ds


def write_dataset(ds: Dataset, path: str) -> None:
    """
    Serialize *ds* to *path* in DICOM format.

    Raises
    ------
    WriteError
        If the file cannot be created or the dataset cannot be encoded.
    """
    logger.info("[START] write %s", path)
    try:
        ds.save_as(path)
    except (OSError, ValueError, TypeError) as exc:
        raise WriteError(path, str(exc)) from exc
    logger.info("[END] write %s", path)


def anonymize_file(
    input_path: str,
    output_path: str,
    rng: random.Random,
    allow_missing: bool = False,
) -> list[AttributeChange]:
    """
    Load a DICOM file, overwrite the target attributes, and save to a new path.

    Parameters
    ----------
    input_path : str
        Path to the source DICOM file.
    output_path : str
        Destination path for the anonymized file.
    rng : random.Random
        Generator used for the Study ID.
    allow_missing : bool
        Tolerate absent target attributes (see anonymize_dataset).

    Returns
    -------
    list[AttributeChange]
        The substitutions applied.

    Raises
    ------
    ParseError, MissingAttributeError, WriteError
        Nothing is written to *output_path* unless the read and the
        substitutions succeed.
    """
    logger.info("[START] %s", input_path)
    ds = read_dataset(input_path)
    changes = anonymize_dataset(ds, rng, allow_missing=allow_missing, source=input_path)
    write_dataset(ds, output_path)
    logger.info("[END] %s", input_path)
    return changes
