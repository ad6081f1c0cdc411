"""Track short jots in dated sets and roll unfinished ones forward."""
