"""
Utilities: exceptions, schemas and validators.
"""
