"""Spectrum analyzer sweep logs to spectrogram images."""

__version__ = "0.3.0"
