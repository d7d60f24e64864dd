"""Tests for scripts/audit_phi.py."""

import random

from dicomanon.pipeline import FilePairing, process_pairs
from scripts.audit_phi import audit_folder, is_valid_study_id
from scripts.generate_sample_data import generate


class TestStudyIdCheck:
    def test_valid(self):
        assert is_valid_study_id("0000012345678901")

    def test_too_short(self):
        assert not is_valid_study_id("12345")

    def test_out_of_range(self):
        assert not is_valid_study_id("0000100000000000")

    def test_non_digit(self):
        assert not is_valid_study_id("ST00000000000001")


class TestAuditFolder:
    def test_missing_folder(self, tmp_path):
        assert audit_folder(str(tmp_path / "nope")) == {}

    def test_raw_samples_flagged(self, tmp_path):
        generate(str(tmp_path))
        results = audit_folder(str(tmp_path))
        assert results["total_files"] == 5
        assert len(results["problems"]) == 5
        first = results["problems"]["scan_01.dcm"]
        assert any(p.startswith("PatientName") for p in first)
        assert any(p.startswith("StudyID") for p in first)

    def test_anonymized_outputs_pass(self, tmp_path):
        raw = tmp_path / "raw"
        clean = tmp_path / "clean"
        clean.mkdir()
        paths = generate(str(raw))
        pairings = [FilePairing(p, str(clean / f"anon_{i}.dcm")) for i, p in enumerate(paths)]
        process_pairs(pairings, rng=random.Random(3))

        results = audit_folder(str(clean))
        assert results["total_files"] == len(paths)
        assert results["problems"] == {}
        assert results["failed_files"] == []
