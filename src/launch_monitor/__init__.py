"""Launch Anomaly Monitor - Real-time detection of suspicious token launch trading."""

__version__ = "0.1.0"
