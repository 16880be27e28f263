"""Load-time benchmark harness for the Droneforge web build."""

__version__ = "0.1.0"
