"""skywatch – weather proxy backend for the Skywatch PH frontend."""

__version__ = "0.1.0"
