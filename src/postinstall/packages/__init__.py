"""
Package manager adapters (installed packages, in dependency order).
"""
