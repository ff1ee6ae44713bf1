###############################################################################
# Copyright (c) 2024 - 2025 Advanced Micro Devices, Inc. All rights reserved.
#
# See LICENSE for license information.
###############################################################################

"""
Generate a performance report for a single query profile: query summary,
execution stats, planner timing, and fragment / pipeline / operator tables,
written as one Excel workbook (one sheet per table) or as CSV files.
"""

import os
import argparse
import sys
from pathlib import Path
from typing import Dict, Optional

import pandas as pd
import logging

from QueryLens.ProfilePerf.profile_perf import ProfilePerfAnalyzer

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(asctime)s] {%(filename)s:%(lineno)d} %(levelname)s - %(message)s"


def build_report_dfs(
    analyzer: ProfilePerfAnalyzer, topk_operators: Optional[int] = None
) -> Dict[str, pd.DataFrame]:
    """Sheet name -> DataFrame for every table of the report, in sheet order."""
    return {
        "query_summary": analyzer.get_df_query_summary(),
        "execution_stats": analyzer.get_df_execution_stats(),
        "planner_timing": analyzer.get_df_planner_timing(),
        "planning_vs_execution": analyzer.get_df_planning_vs_execution(),
        "fragments": analyzer.get_df_fragments(),
        "pipelines": analyzer.get_df_pipelines(),
        "operators": analyzer.get_df_operators(topk=topk_operators),
    }


def default_output_xlsx_path(profile_json_path: str) -> str:
    base = Path(profile_json_path).resolve()
    if base.name.endswith(".json.gz"):
        base = base.parent / base.name[: -len(".json.gz")]
    else:
        base = base.with_suffix("")
    return str(base) + "_perf_report.xlsx"


def write_report(
    dfs: Dict[str, pd.DataFrame],
    output_xlsx_path: Optional[str] = None,
    output_csvs_dir: Optional[str] = None,
) -> None:
    if output_csvs_dir:
        logger.info("Writing CSV files to: %s", output_csvs_dir)
        os.makedirs(output_csvs_dir, exist_ok=True)
        for sheet_name, df in dfs.items():
            csv_path = os.path.join(output_csvs_dir, f"{sheet_name}.csv")
            df.to_csv(csv_path, index=False)
            logger.info("  - %s.csv (%d rows)", sheet_name, len(df))
        return

    logger.info("Writing Excel file to: %s", output_xlsx_path)
    try:
        import openpyxl  # noqa: F401
    except (ImportError, ModuleNotFoundError) as e:
        logger.error("openpyxl required for Excel output: %s. pip install openpyxl", e)
        raise
    with pd.ExcelWriter(output_xlsx_path, engine="openpyxl") as writer:
        for sheet_name, df in dfs.items():
            df.to_excel(writer, sheet_name=sheet_name, index=False)
            logger.info("  - Sheet '%s' (%d rows)", sheet_name, len(df))
    logger.info("Successfully written to %s", output_xlsx_path)


def generate_perf_report_query_profile(
    profile_json_path: str,
    output_xlsx_path: Optional[str] = None,
    output_csvs_dir: Optional[str] = None,
    topk_operators: Optional[int] = None,
) -> Dict[str, pd.DataFrame]:
    """
    Load a query profile (.json or .json.gz), analyze it and write the report.

    Args:
        profile_json_path: Path to the query profile.
        output_xlsx_path: Optional path of the Excel file; defaults to
            <profile>_perf_report.xlsx next to the input.
        output_csvs_dir: Optional directory for CSV output instead of Excel.
        topk_operators: Keep only the K most expensive operators.

    Returns:
        Dict of sheet name -> DataFrame.

    Raises:
        ProfileFormatError: the profile has no "Query" object.
    """
    logger.info("Loading query profile from: %s", profile_json_path)
    analyzer = ProfilePerfAnalyzer.from_file(profile_json_path)
    analysis = analyzer.analysis
    logger.info(
        "Found %d fragments, %d pipelines",
        len(analysis.fragments),
        sum(1 for _ in analysis.all_pipelines()),
    )
    if analysis.planner_timing is None:
        logger.info("No planner timing in profile")

    dfs = build_report_dfs(analyzer, topk_operators=topk_operators)
    if not output_csvs_dir and output_xlsx_path is None:
        output_xlsx_path = default_output_xlsx_path(profile_json_path)
    write_report(dfs, output_xlsx_path=output_xlsx_path, output_csvs_dir=output_csvs_dir)
    return dfs


def main() -> None:
    logging.basicConfig(stream=sys.stdout, level=logging.INFO, format=LOG_FORMAT)
    parser = argparse.ArgumentParser(
        description="Analyze a query profile and generate a performance report",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Generate Excel report
  QueryLens_generate_perf_report --profile_json_path query_profile.json

  # Generate CSV files instead of Excel, keeping the 20 costliest operators
  QueryLens_generate_perf_report --profile_json_path query_profile.json \\
      --output_csvs_dir ./output --topk_operators 20
        """,
    )
    parser.add_argument(
        "--profile_json_path",
        type=str,
        required=True,
        help="Path to the query profile (.json or .json.gz)",
    )
    parser.add_argument(
        "--output_xlsx_path",
        type=str,
        default=None,
        help="Path to the output Excel file",
    )
    parser.add_argument(
        "--output_csvs_dir",
        type=str,
        default=None,
        help="Directory to save output CSV files (alternative to Excel)",
    )
    parser.add_argument(
        "--topk_operators",
        type=int,
        default=None,
        help="Limit the operators sheet to the top K operators by time (default: all)",
    )
    args = parser.parse_args()

    if not os.path.exists(args.profile_json_path):
        logger.error("Input file not found: %s", args.profile_json_path)
        sys.exit(1)

    try:
        generate_perf_report_query_profile(
            profile_json_path=args.profile_json_path,
            output_xlsx_path=args.output_xlsx_path,
            output_csvs_dir=args.output_csvs_dir,
            topk_operators=args.topk_operators,
        )
    except Exception as e:
        logger.exception("Error generating query profile report: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
