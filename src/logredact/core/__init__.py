"""
Core redaction components.

This package contains the redaction engine and its collaborators:
- Rule parsing and the immutable rule set
- Rule source loaders (line files, rule strings, JSON files)
- The per-thread match engine
- Logging integration
- Metrics collection
"""
