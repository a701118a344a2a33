"""Release notes synchronizer.

Keeps release-note text in a release catalog in step with the notes
published on GitHub Releases for each tracked release source.
"""

__version__ = "0.1.0"
