"""Download YouTube audio into an artist-organised library and play it back."""

__version__ = "0.1.0"
