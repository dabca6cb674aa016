"""flowx: daily task planner with efficiency scoring."""

__version__ = "0.1.0"
