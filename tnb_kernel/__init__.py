"""
TNB Kernel

Pure domain layer for the municipal unbuilt-land tax (TNB):
- Typed, code-carrying exceptions
- Structured JSON logging
- Immutable parcel, tariff and ownership value objects
- Optional SQLAlchemy persistence adapter (models + read-only selectors)
"""

__version__ = "0.1.0"
