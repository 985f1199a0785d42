"""HTTP transport for PracticeBase."""
