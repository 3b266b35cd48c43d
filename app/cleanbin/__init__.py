"""cleanbin - Safe cleanup of build-artifact directories.

Finds compiled-output and dependency-cache folders beneath a root path,
classifies their contents, optionally backs them up, and deletes what is
safe to delete.
"""

__version__ = "0.3.0"
