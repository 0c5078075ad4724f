"""Budget tracker backend: backup/restore engine over the finance dataset."""

__version__ = "0.1.0"
