"""Building blocks for controlling a mediasoup media worker: H264 profiles, netstrings, events, logging, the request channel, consumers and data producers."""

__version__ = "0.1.0"