"""
Version information for event-image-resolver package.
"""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("event-image-resolver")
except PackageNotFoundError:
    # Package is not installed
    __version__ = "0.0.0+unknown"
