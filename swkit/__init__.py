"""Building blocks for a malware analysis pipeline: hashing, tool output
parsing, archive extraction, configuration, logging, an ML service client,
an nsqd publisher and sandbox agent helpers."""

__version__ = "0.4.0"