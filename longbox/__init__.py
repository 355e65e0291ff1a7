"""Longbox core package.

Modules:
- archive: CBZ reading and cover extraction
- scanner: filesystem walk producing a catalog snapshot
- store: holder of the published catalog
- resolver: client identifiers to catalog keys and file paths
- service: data operations used by the API
- monitor: Watchdog-based filesystem monitoring
- api: FastAPI app and routing
- config: INI parsing and config object
"""
