"""
Task subsystem.

Components:
- task_models.py: install task variants (file/url/class), scope and status
- task_loader.py: builds the ordered task list from package metadata
- status_store.py: global/local status files + ensure_writable
- operation_store.py: file-backed record of the install operation in flight
"""
