"""
cli.py - Command-line entry point.

Usage
-----
    dicomanon --input a.dcm,b.dcm --output a_out.dcm,b_out.dcm
    python -m dicomanon -i scan.dcm -o clean.dcm --seed 7

Exit status is 0 when every file was written, 1 on the first failure
(later files are not processed), and 2 for argparse usage errors.
"""

import argparse
import logging
import os
import sys
from typing import Optional, Sequence

import yaml

from dicomanon import __version__
from dicomanon.config import CONFIG, load_config
from dicomanon.errors import AnonymizerError, ArgumentError
from dicomanon.pipeline import make_rng, pair_paths, process_pairs

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dicomanon",
        description="Overwrite patient-identifying attributes in DICOM files.",
    )
    parser.add_argument(
        "-i", "--input", required=True,
        help="comma-separated list of input DICOM files",
    )
    parser.add_argument(
        "-o", "--output", required=True,
        help="comma-separated list of output paths, one per input",
    )
    parser.add_argument(
        "--config", default=None,
        help="YAML config file (default: $DICOMANON_CONFIG or config.yaml)",
    )
    parser.add_argument(
        "--seed", type=int, default=None,
        help="seed for Study ID generation (default: OS entropy)",
    )
    parser.add_argument(
        "--allow-missing", action="store_true", default=None,
        help="add absent target attributes instead of failing",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="enable DEBUG logging",
    )
    parser.add_argument(
        "-V", "--version", action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def setup_logging(level: str = "INFO", fmt: Optional[str] = None) -> None:
    """
    Configure root logging to stdout.

    Raises ArgumentError for a level name the logging module does not know.
    """
    level = str(level).upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ArgumentError(f"unknown log level: {level}", option="logging.level")
    logging.basicConfig(
        level=level,
        format=fmt or "%(asctime)s %(levelname)-8s %(message)s",
        stream=sys.stdout,
    )
    logging.getLogger().setLevel(level)


def _load_settings(config_path: Optional[str]) -> dict:
    if config_path is None:
        return CONFIG
    if not os.path.exists(config_path):
        raise ArgumentError(f"config file not found: {config_path}", option="--config")
    return load_config(config_path)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = _load_settings(args.config)
        log_cfg = settings["logging"]
        setup_logging("DEBUG" if args.verbose else log_cfg["level"], log_cfg["format"])
    except (ArgumentError, yaml.YAMLError) as exc:
        setup_logging()
        logger.error("%s", exc)
        return 1

    anon_cfg = settings["anonymization"]
    seed = args.seed if args.seed is not None else anon_cfg["seed"]
    allow_missing = (
        args.allow_missing if args.allow_missing is not None else anon_cfg["allow_missing"]
    )

    try:
        pairings = pair_paths(args.input, args.output)
        process_pairs(pairings, rng=make_rng(seed), allow_missing=bool(allow_missing))
    except AnonymizerError as exc:
        logger.error("%s", exc)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
