"""dicomanon - overwrite patient-identifying attributes in DICOM files."""

__version__ = "0.1.0"
