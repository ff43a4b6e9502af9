"""
Houses the tests for the REST api layer of the program. This layer is what the kiosk screens
speak to, so the tests assert that the shape of the responses remains stable and that the
expected failures come back with the expected status codes.

The views run against the real service layer on an in-memory database.
"""
