"""
Request DTOs

DTOs bound from route values, query string and JSON body before an endpoint
handler runs. Pydantic failures are reported as 400 validation errors keyed by
field name.
"""
