"""HTTP service for the pipeline canvas."""
