"""Storage and file formats: document store, serializers, program files."""
