# This project was developed with assistance from AI tools.
"""StayVerify -- partner and property verification service."""

__version__ = "0.1.0"
