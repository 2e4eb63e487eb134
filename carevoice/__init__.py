"""CareVoice - live speech capture, medical-aware translation and spoken playback."""

__version__ = "0.1.0"
