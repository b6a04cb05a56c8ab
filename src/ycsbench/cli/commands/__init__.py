"""Sub-command groups of the ycsbench CLI."""
