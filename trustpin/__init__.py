"""trustpin — version resolution and tiered download verification."""

__version__ = "0.1.0"
