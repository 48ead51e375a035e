"""
Response DTOs

DTOs for outgoing API responses. These decouple the API from database models
and control the wire names of every field.
"""
