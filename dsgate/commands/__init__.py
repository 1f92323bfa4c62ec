"""One module per CLI verb; each exposes a run_* function returning an exit code."""
