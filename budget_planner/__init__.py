"""Top‑level package for the Budget Planner.

The primary modules are:

* ``rollup`` – group/section/grand totals with income/expense sign
* ``cashflow`` – running balance from the configured starting point
* ``variance`` – budget versus actual with favorability
* ``expressions`` / ``clipboard`` / ``fill`` – turning typed text, pasted
  rows and drag gestures into monthly values
* ``session`` – buffered editing with deferred saves
* ``db`` – SQLite storage
* ``app`` – a Streamlit app that ties everything together

To run the app from the command line you can execute:

```bash
streamlit run budget_planner/app.py
```
"""

from .cashflow import compute_cashflow
from .rollup import compute_rollup
from .session import EditSessionController
from .variance import compute_variance

__all__ = ["compute_cashflow", "compute_rollup", "compute_variance", "EditSessionController"]
