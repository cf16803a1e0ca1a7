"""
Core: installer state machine, ports and application state.
"""
