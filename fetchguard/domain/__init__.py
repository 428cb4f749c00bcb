"""Domain Layer: value objects, errors, events and ports.

Has no dependencies on infrastructure; adapters implement the interfaces
defined here.
"""
