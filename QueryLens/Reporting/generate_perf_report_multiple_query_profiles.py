###############################################################################
# Copyright (c) 2024 - 2025 Advanced Micro Devices, Inc. All rights reserved.
#
# See LICENSE for license information.
###############################################################################

"""
Generate one performance report per query profile found in a directory.
Profiles are analyzed independently of each other; a profile that cannot be
loaded or has no "Query" object is logged and skipped.
"""

import argparse
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd
import tqdm
import logging

from QueryLens.ProfilePerf.profile_perf import ProfilePerfAnalyzer
from QueryLens.Reporting.generate_perf_report_query_profile import build_report_dfs
from QueryLens.util import ProfileFormatError

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(asctime)s] {%(filename)s:%(lineno)d} %(levelname)s - %(message)s"


def get_profile_files(
    directory: str, scan_subfolders: bool = False, ignore_files: Optional[List[str]] = None
) -> List[str]:
    """
    Collect .json and .json.gz query profiles in a directory.

    Args:
        directory (str): The directory to search.
        scan_subfolders (bool, optional): If True, scan subfolders recursively. Defaults to False.
        ignore_files (list, optional): File names to ignore.

    Returns:
        list: Sorted file paths.
    """
    ignore_files = set(ignore_files or [])

    def is_profile(file):
        return (file.endswith("json") or file.endswith("json.gz")) and file not in ignore_files

    profile_files = []
    if scan_subfolders:
        for root, dirs, files in os.walk(directory):
            for file in files:
                if is_profile(file):
                    profile_files.append(os.path.join(root, file))
    else:
        for file in os.listdir(directory):
            path = os.path.join(directory, file)
            if os.path.isfile(path) and is_profile(file):
                profile_files.append(path)
    return sorted(profile_files)


def _report_basename(profile_path: str) -> str:
    name = Path(profile_path).name
    for suffix in (".json.gz", ".json"):
        if name.endswith(suffix):
            return name[: -len(suffix)]
    return Path(name).stem


def export_report_dfs(
    dfs: Dict[str, pd.DataFrame],
    output_folder_path: Path,
    output_filename: str,
    output_table_format: List[str] = [".xlsx"],
) -> None:
    """
    Export the report tables of one profile: one workbook with a sheet per
    table for .xlsx, one <output_filename>_<table>.csv per table for .csv.
    """
    for table_format in output_table_format:
        if table_format == ".xlsx":
            output_path = output_folder_path.joinpath(output_filename + "_perf_report.xlsx")
            with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
                for sheet_name, df in dfs.items():
                    df.to_excel(writer, sheet_name=sheet_name, index=False)
            logger.debug("Wrote %s", output_path)
        elif table_format == ".csv":
            for sheet_name, df in dfs.items():
                output_path = output_folder_path.joinpath(f"{output_filename}_{sheet_name}.csv")
                df.to_csv(output_path, index=False)
                logger.debug("Wrote %s", output_path)
        else:
            raise ValueError(f"Unknown output table format: {table_format}")


def generate_perf_report_multiple_query_profiles(
    profile_dir: str,
    output_dir: Optional[str] = None,
    scan_subfolders: bool = False,
    output_table_format: List[str] = [".xlsx"],
    topk_operators: Optional[int] = None,
) -> Dict[str, Dict[str, pd.DataFrame]]:
    """
    Analyze every profile in profile_dir and write a report for each.

    Returns:
        Dict of profile path -> (sheet name -> DataFrame) for the profiles
        that were analyzed successfully.
    """
    profile_files = get_profile_files(profile_dir, scan_subfolders=scan_subfolders)
    logger.info("Found %d profiles in %s", len(profile_files), profile_dir)

    output_folder = Path(output_dir) if output_dir else None
    if output_folder is not None:
        output_folder.mkdir(parents=True, exist_ok=True)

    reports = {}
    for profile_path in tqdm.tqdm(profile_files, desc="Query profiles"):
        try:
            analyzer = ProfilePerfAnalyzer.from_file(profile_path)
        except ProfileFormatError as e:
            logger.warning("Skipping %s: %s", profile_path, e)
            continue
        except (OSError, ValueError) as e:
            logger.warning("Skipping %s: could not load profile (%s)", profile_path, e)
            continue

        dfs = build_report_dfs(analyzer, topk_operators=topk_operators)
        if output_folder is not None:
            # reports mirror the profile's subfolder under output_dir
            report_folder = output_folder.joinpath(
                Path(profile_path).parent.relative_to(profile_dir)
            )
            report_folder.mkdir(parents=True, exist_ok=True)
            export_report_dfs(
                dfs,
                output_folder_path=report_folder,
                output_filename=_report_basename(profile_path),
                output_table_format=output_table_format,
            )
        reports[profile_path] = dfs

    logger.info("Generated %d of %d reports", len(reports), len(profile_files))
    return reports


def main() -> None:
    logging.basicConfig(stream=sys.stdout, level=logging.INFO, format=LOG_FORMAT)
    parser = argparse.ArgumentParser(
        description="Generate a performance report for every query profile in a directory."
    )
    parser.add_argument("--profile_dir", type=str, required=True, help="Directory containing query profiles")
    parser.add_argument("--output_dir", type=str, required=True, help="Path to the output folder")
    parser.add_argument("--scan_subfolders", action="store_true", help="Scan subfolders for profiles")
    parser.add_argument(
        "--output_table_format",
        type=str,
        nargs="+",
        default=[".xlsx"],
        choices=[".xlsx", ".csv"],
        help="output table save formats, .xlsx or .csv or both",
    )
    parser.add_argument(
        "--topk_operators",
        type=int,
        default=None,
        help="Limit the operators table to the top K operators by time (default: all)",
    )
    args = parser.parse_args()

    if not os.path.isdir(args.profile_dir):
        logger.error("Input directory not found: %s", args.profile_dir)
        sys.exit(1)

    try:
        generate_perf_report_multiple_query_profiles(
            profile_dir=args.profile_dir,
            output_dir=args.output_dir,
            scan_subfolders=args.scan_subfolders,
            output_table_format=args.output_table_format,
            topk_operators=args.topk_operators,
        )
    except Exception as e:
        logger.exception("Error generating query profile reports: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
