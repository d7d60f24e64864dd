"""
generate_sample_data.py - Create synthetic DICOM files for a quick demo.

Writes a handful of small CT files that carry all five attributes the
anonymizer overwrites, so the tool can be tried without real patient data.

Usage
-----
    python scripts/generate_sample_data.py                 # writes to data/raw/
    python scripts/generate_sample_data.py path/to/folder  # custom folder

After running, try:
    python -m dicomanon -i data/raw/scan_01.dcm,data/raw/scan_02.dcm \\
        -o data/raw/scan_01_out.dcm,data/raw/scan_02_out.dcm
"""

import os
import sys

import numpy as np
import pydicom
from pydicom.dataset import FileDataset, FileMetaDataset
from pydicom.uid import CTImageStorage, ExplicitVRLittleEndian

# Make sure repo root is on the path when run as a script
_REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _REPO_ROOT)

from dicomanon.config import CONFIG  # noqa: E402 — import after path fix

OUTPUT_FOLDER = os.path.join(_REPO_ROOT, CONFIG["paths"]["sample_folder"])


# ---------------------------------------------------------------------------
# Synthetic patients
# ---------------------------------------------------------------------------
_SAMPLE_PATIENTS = [
    # (filename_stem, patient_name, birth_date, institution)
    ("scan_01", "Yamada^Taro", "19800101", "City General Hospital"),
    ("scan_02", "Suzuki^Hanako", "19751224", "City General Hospital"),
    ("scan_03", "Tanaka^Ichiro", "19620315", "Riverside Clinic"),
    ("scan_04", "Sato^Yuki", "19990707", "Riverside Clinic"),
    ("scan_05", "Kobayashi^Ken", "19501030", "North Medical Center"),
]


def make_dicom(
    path: str,
    patient_name: str,
    patient_id: str,
    birth_date: str,
    institution: str,
    study_id: str,
    size: int = 64,
    seed: int = 42,
) -> None:
    """
    Write a single synthetic CT DICOM file.

    Pixel values are drawn from a Normal distribution around soft-tissue
    density.  The five target attributes are always present.
    """
    rng = np.random.default_rng(seed)
    pixels = rng.normal(1040, 180, size=(size, size)).clip(0, 4095).astype(np.uint16)

    file_meta = FileMetaDataset()
    file_meta.MediaStorageSOPClassUID = CTImageStorage
    file_meta.MediaStorageSOPInstanceUID = pydicom.uid.generate_uid()
    file_meta.TransferSyntaxUID = ExplicitVRLittleEndian

    ds = FileDataset(path, {}, file_meta=file_meta, preamble=b"\0" * 128)
    ds.SOPClassUID = file_meta.MediaStorageSOPClassUID
    ds.SOPInstanceUID = file_meta.MediaStorageSOPInstanceUID

    # --- Target attributes (overwritten by the anonymizer) ---
    ds.PatientName = patient_name
    ds.PatientID = patient_id
    ds.PatientBirthDate = birth_date
    ds.StudyID = study_id
    ds.InstitutionName = institution

    # --- Everything else must survive untouched ---
    ds.PatientSex = "O"
    ds.StudyDate = "20230601"
    ds.StudyTime = "120000"
    ds.Modality = "CT"
    ds.StudyInstanceUID = pydicom.uid.generate_uid()
    ds.SeriesInstanceUID = pydicom.uid.generate_uid()

    ds.Rows = size
    ds.Columns = size
    ds.SamplesPerPixel = 1
    ds.PhotometricInterpretation = "MONOCHROME2"
    ds.PixelRepresentation = 0
    ds.BitsAllocated = 16
    ds.BitsStored = 16
    ds.HighBit = 15
    ds.RescaleSlope = 1.0
    ds.RescaleIntercept = -1024.0
    ds.PixelData = pixels.tobytes()

    ds.save_as(path)


def generate(output_folder: str = OUTPUT_FOLDER) -> list[str]:
    """Generate all synthetic DICOM files into *output_folder*."""
    os.makedirs(output_folder, exist_ok=True)

    print(f"Writing {len(_SAMPLE_PATIENTS)} synthetic DICOM files to: {output_folder}")
    print("-" * 60)

    paths = []
    for i, (stem, name, birth_date, institution) in enumerate(_SAMPLE_PATIENTS, start=1):
        path = os.path.join(output_folder, f"{stem}.dcm")
        make_dicom(
            path=path,
            patient_name=name,
            patient_id=f"{i:010d}",
            birth_date=birth_date,
            institution=institution,
            study_id=f"ST{i:04d}",
            seed=42 + i,
        )
        paths.append(path)
        print(f"  [{i:02d}/{len(_SAMPLE_PATIENTS)}] {stem}.dcm  ({name})")

    print("-" * 60)
    outputs = [p.replace(".dcm", "_anon.dcm") for p in paths]
    print("Done.  Anonymize them with:")
    print(f"  python -m dicomanon -i {','.join(paths)} -o {','.join(outputs)}")
    return paths


if __name__ == "__main__":
    generate(sys.argv[1] if len(sys.argv) > 1 else OUTPUT_FOLDER)
