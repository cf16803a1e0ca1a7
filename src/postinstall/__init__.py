"""
postinstall: run and track the post-install steps declared by installed packages.
"""

__version__ = "0.1.0"
