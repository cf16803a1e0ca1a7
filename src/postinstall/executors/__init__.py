"""
Executors performing install tasks, one strategy per task type.
"""
