"""User interfaces for work-rules."""
