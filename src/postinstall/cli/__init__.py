"""
Command-line interface: console loop and slash commands.
"""
