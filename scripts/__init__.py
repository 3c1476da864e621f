"""
Scripts package for the connection indexer.

These scripts are standalone executables that can be run directly:
- index_connections.py: Watch a listing page while scrolling and sync new connections
- export_connections.py: Export synced connections from the remote store to CSV
"""
