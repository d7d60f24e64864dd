"""
pipeline.py - Sequential batch driver.

Pairs input paths with output paths positionally and anonymizes each pair
in order.  Processing is strictly serial: one file is read, modified and
written before the next one is opened.  The first failure aborts the run;
outputs already written for earlier pairs are left on disk.
"""

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Optional, Sequence, Union

from dicomanon.anonymizer import AttributeChange, anonymize_file
from dicomanon.errors import ArgumentError

logger = logging.getLogger(__name__)

PathList = Union[str, Sequence[str]]


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FilePairing:
    """One input file and the path its anonymized copy is written to."""
    input_path: str
    output_path: str


@dataclass
class FileResult:
    """Outcome of a single successfully processed pair."""
    input_path: str
    output_path: str
    changes: list[AttributeChange] = field(default_factory=list)
    duration_s: float = 0.0


@dataclass
class RunReport:
    """Aggregate report produced at the end of a run."""
    total_files: int = 0
    elapsed_s: float = 0.0
    results: list[FileResult] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return len(self.results)

    def summary(self) -> str:
        lines = [
            "=" * 50,
            "ANONYMIZATION SUMMARY",
            "=" * 50,
            f"Files requested : {self.total_files}",
            f"Files written   : {self.processed}",
            f"Total time      : {self.elapsed_s:.2f}s",
        ]
        for r in self.results:
            lines.append(f"  {r.input_path} -> {r.output_path} ({r.duration_s:.2f}s)")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Pairing
# ---------------------------------------------------------------------------

def split_paths(value: PathList, option: Optional[str] = None) -> list[str]:
    """
    Split a comma-separated path list.

    A list or tuple is accepted as-is (entries are still stripped).
    Empty entries, e.g. from ``"a.dcm,,b.dcm"`` or a trailing comma,
    raise ArgumentError.
    """
    parts = value.split(",") if isinstance(value, str) else list(value)
    paths = [p.strip() for p in parts]
    for index, path in enumerate(paths):
        if not path:
            raise ArgumentError(f"empty path at position {index + 1}", option=option)
    return paths


def pair_paths(inputs: PathList, outputs: PathList) -> list[FilePairing]:
    """
    Pair *inputs* with *outputs* by position.

    Raises
    ------
    ArgumentError
        If either list has an empty entry or the two lists differ in length.
    """
    input_list = split_paths(inputs, option="--input")
    output_list = split_paths(outputs, option="--output")

    if len(input_list) != len(output_list):
        raise ArgumentError(
            f"{len(input_list)} input path(s) but {len(output_list)} output path(s); "
            "the lists must have the same length"
        )

    return [FilePairing(i, o) for i, o in zip(input_list, output_list)]


def make_rng(seed: Optional[int] = None) -> random.Random:
    """Return the generator for one run.  *seed* None uses OS entropy."""
    return random.Random(seed)


# ---------------------------------------------------------------------------
# Core pipeline
# ---------------------------------------------------------------------------

def process_pairs(
    pairings: Sequence[FilePairing],
    rng: Optional[random.Random] = None,
    allow_missing: bool = False,
) -> RunReport:
    """
    Anonymize every pairing in order.

    Parameters
    ----------
    pairings : sequence of FilePairing
        Processed strictly in the given order.
    rng : random.Random, optional
        Shared by all files; one Study ID is drawn per file.  Defaults to
        a fresh generator seeded from OS entropy.
    allow_missing : bool
        Tolerate absent target attributes instead of failing.

    Returns
    -------
    RunReport
        Summary of the run.

    Raises
    ------
    AnonymizerError
        The first failure is re-raised unchanged; later pairs are skipped.
    """
    if rng is None:
        rng = make_rng()

    report = RunReport(total_files=len(pairings))
    run_start = time.time()

    logger.info("Starting run: %d file(s) to process.", report.total_files)

    for pairing in pairings:
        file_start = time.time()
        changes = anonymize_file(
            pairing.input_path,
            pairing.output_path,
            rng,
            allow_missing=allow_missing,
        )
        report.results.append(
            FileResult(
                input_path=pairing.input_path,
                output_path=pairing.output_path,
                changes=changes,
                duration_s=time.time() - file_start,
            )
        )

    report.elapsed_s = time.time() - run_start
    logger.info(report.summary())
    return report
