"""Internal implementation package of improveway; import public names from ``improveway``."""
