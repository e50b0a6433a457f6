"""Boot timeline charts from systemd timestamps."""

__version__ = "0.1.0"
