"""Office-hours queue and course insights backend."""
