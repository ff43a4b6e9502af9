"""
Houses the tests for the service layer of the program. This layer is what manages the internal API, and is
what any interface should use to speak through when communicating with the rest of the system.

The managers are built on a hand-moved clock, so that prices and durations come out exactly.
"""
