"""Personal task tracking: task data layer, backing stores and completion reports."""

__version__ = "0.1.0"
