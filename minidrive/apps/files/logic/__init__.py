"""Storage operations of the files app.

Functions here own every change to files, folders and usage:
- ``file_operations``: two-state upload, download, delete, move, list
- ``folder_operations``: hierarchy and cascading folder deletion
- ``quota_operations``: tier limits and usage accounting
- ``subscription_operations``: tier changes and usage reports

Models only hold data; object store access goes through
``minidrive.apps.files.infrastructure``.
"""
