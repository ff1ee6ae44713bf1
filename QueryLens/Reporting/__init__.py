###############################################################################
# Copyright (c) 2024 - 2025 Advanced Micro Devices, Inc. All rights reserved.
#
# See LICENSE for license information.
###############################################################################

from .generate_perf_report_query_profile import generate_perf_report_query_profile
from .generate_perf_report_multiple_query_profiles import (
    generate_perf_report_multiple_query_profiles,
)
