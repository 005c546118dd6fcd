"""
Guildhall Test Suite
====================

Test Organization
-----------------
- tests/unit/          : Fast unit tests of pure game logic (no database)
- tests/integration/   : Engine operations against in-memory SQLite

Testing Philosophy
------------------
- Unit tests: Fast, isolated, test business logic
- Integration tests: Run the real transaction and persistence paths
- Randomness and time are scripted through `ScriptedRandom` and `FixedClock`
- Use pytest markers to categorize and selectively run tests
"""
