"""syncato test suite.

- unit/test_local_storage.py, unit/test_fsspec_storage.py: storage providers
- unit/test_storage_mux.py: scheme routing and cross-storage rejection
- unit/test_config_loader.py, unit/test_registry.py: configuration and provider wiring
"""
