"""
Domain Layer

Immutable value types shared by the endpoint base, the response dispatcher
and the error handlers.

Structure:
- value_objects/: ValidationFailure and ByteRange
"""
