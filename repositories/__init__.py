"""
repositories/ - Data Access Layer
==================================
Persistence adapters: string keys mapped to JSON-serialized blobs.
The stores in services/ only ever talk to the KeyValueStore interface.
"""
