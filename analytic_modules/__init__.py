"""Application modules built on the analytic kernel and engines."""
