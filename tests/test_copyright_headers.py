###############################################################################
# Copyright (c) 2024 - 2025 Advanced Micro Devices, Inc. All rights reserved.
#
# See LICENSE for license information.
###############################################################################

from pathlib import Path

import pytest

# Exact copyright header template
PYTHON_HEADER = """###############################################################################
# Copyright (c) 2024 - 2025 Advanced Micro Devices, Inc. All rights reserved.
#
# See LICENSE for license information.
###############################################################################

"""

ROOT_PATH = Path(__file__).parent.parent
CHECKED_DIRS = ["QueryLens", "tests"]
SKIP_DIRS = {"__pycache__", ".pytest_cache", "QueryLens.egg-info"}


def _python_files():
    for dirname in CHECKED_DIRS:
        for filepath in sorted((ROOT_PATH / dirname).rglob("*.py")):
            if any(skip_dir in filepath.parts for skip_dir in SKIP_DIRS):
                continue
            yield filepath


@pytest.mark.parametrize(
    "filepath", list(_python_files()), ids=lambda p: str(p.relative_to(ROOT_PATH))
)
def test_python_file_has_exact_copyright(filepath):
    with open(filepath, "r", encoding="utf-8") as f:
        content = f.read()

    # Handle shebang line
    if content.startswith("#!"):
        content = content.split("\n", 1)[1] if "\n" in content else ""

    if content.startswith(PYTHON_HEADER):
        return
    if "Copyright (c)" in content[:500]:
        pytest.fail(f"{filepath.relative_to(ROOT_PATH)} has an incorrect copyright format")
    pytest.fail(f"{filepath.relative_to(ROOT_PATH)} is missing the copyright header")
