"""Export orchestration, worker, and audit services."""
