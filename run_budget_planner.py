#!/usr/bin/env python3
"""Direct launcher for the Budget Planner Streamlit app."""

import subprocess
import sys
from pathlib import Path

project_root = Path(__file__).parent.resolve()
app_path = project_root / "budget_planner" / "app.py"

if __name__ == "__main__":
    subprocess.run([
        sys.executable, "-m", "streamlit", "run",
        str(app_path),
        *sys.argv[1:],
    ], cwd=project_root)
