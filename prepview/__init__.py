"""PrepView interview-practice client: voice capture, segmentation and transcription."""

__version__ = "0.3.0"
