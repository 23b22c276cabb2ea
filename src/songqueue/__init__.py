"""songqueue - playback queue and transport core for a streaming music client."""

__version__ = "0.1.0"
