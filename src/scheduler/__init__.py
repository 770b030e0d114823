"""
Scheduler module for the deal pipeline stages.
"""
from .jobs import (
    setup_scheduler,
    shutdown_scheduler,
    scheduler,
    run_ingest_stage,
    run_extract_stage,
    run_embed_stage,
    run_cleanup_stage,
)

__all__ = [
    "setup_scheduler",
    "shutdown_scheduler",
    "scheduler",
    "run_ingest_stage",
    "run_extract_stage",
    "run_embed_stage",
    "run_cleanup_stage",
]
