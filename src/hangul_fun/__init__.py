"""Step through Korean song lyrics with synced audio and jamo breakdowns."""

__version__ = "0.1.0"
