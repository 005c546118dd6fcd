"""
Guildhall domain modules.

One package per game system. Each service opens its own transaction through
`DatabaseService.get_transaction()` or, when composed by another service,
works inside the session it is handed.
"""
