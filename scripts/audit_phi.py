"""
audit_phi.py - Verify that DICOM files carry the anonymized values.

Scans a folder of anonymizer outputs and checks, per file, that each of the
five target attributes holds its expected substitute.  The Study ID is
random, so it is only checked for shape (16 decimal digits, below 10^11).

Usage
-----
    python scripts/audit_phi.py path/to/anonymized/folder
"""

import logging
import os
import sys

import pydicom
from pydicom.errors import InvalidDicomError

# Ensure repo root is on sys.path
_REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _REPO_ROOT)

from dicomanon.anonymizer import (  # noqa: E402
    INSTITUTION_NAME_VALUE,
    PATIENT_BIRTH_DATE_VALUE,
    PATIENT_ID_VALUE,
    PATIENT_NAME_VALUE,
    STUDY_ID_UPPER_BOUND,
    STUDY_ID_WIDTH,
    TARGET_ATTRIBUTES,
)

logging.basicConfig(level=logging.INFO, format="%(levelname)-8s %(message)s")
logger = logging.getLogger(__name__)

_EXPECTED_CONSTANTS = {
    "PatientName": PATIENT_NAME_VALUE,
    "PatientID": PATIENT_ID_VALUE,
    "PatientBirthDate": PATIENT_BIRTH_DATE_VALUE,
    "InstitutionName": INSTITUTION_NAME_VALUE,
}


def is_valid_study_id(value: str) -> bool:
    return (
        len(value) == STUDY_ID_WIDTH
        and value.isdigit()
        and int(value) < STUDY_ID_UPPER_BOUND
    )


def audit_dataset(ds) -> list[str]:
    """Return a list of problems found in *ds*; empty means it passed."""
    problems = []
    for target in TARGET_ATTRIBUTES:
        if target.tag not in ds:
            problems.append(f"{target.keyword}: absent")
            continue
        value = str(ds[target.tag].value)
        if target.keyword == "StudyID":
            if not is_valid_study_id(value):
                problems.append(f"StudyID: \"{value}\" is not a 16-digit number")
        elif value != _EXPECTED_CONSTANTS[target.keyword]:
            problems.append(f"{target.keyword}: \"{value}\" still present")
    return problems


def audit_folder(folder: str) -> dict:
    """
    Audit every file in *folder*.

    Returns
    -------
    dict
        ``{"folder", "total_files", "failed_files", "problems"}`` where
        *problems* maps file name to its list of problems.
    """
    if not os.path.isdir(folder):
        logger.error("Folder not found: %s", folder)
        return {}

    files = sorted(f for f in os.listdir(folder) if not f.startswith("."))
    problems: dict[str, list[str]] = {}
    failed_files: list[str] = []

    for fname in files:
        try:
            ds = pydicom.dcmread(os.path.join(folder, fname))
        except (OSError, InvalidDicomError) as exc:
            failed_files.append(f"{fname}: {exc}")
            continue
        found = audit_dataset(ds)
        if found:
            problems[fname] = found

    return {
        "folder": folder,
        "total_files": len(files) - len(failed_files),
        "failed_files": failed_files,
        "problems": problems,
    }


def print_report(results: dict) -> None:
    """Print a human-readable audit report."""
    if not results:
        return

    print("=" * 60)
    print("ANONYMIZATION AUDIT")
    print("=" * 60)
    print(f"  Folder        : {results['folder']}")
    print(f"  Files scanned : {results['total_files']}")
    if results["failed_files"]:
        print(f"  Failed to read: {len(results['failed_files'])}")
        for line in results["failed_files"]:
            print(f"    {line}")
    print()

    if results["problems"]:
        print("  ⚠  Files with identifying values left:")
        for fname, found in results["problems"].items():
            print(f"    {fname}")
            for problem in found:
                print(f"      - {problem}")
    else:
        print("  ✓  All target attributes carry anonymized values.")
    print()


def main() -> int:
    if len(sys.argv) != 2:
        print(__doc__)
        return 2

    results = audit_folder(sys.argv[1])
    print_report(results)
    if not results or results["problems"] or results["failed_files"]:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
