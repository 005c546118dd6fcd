"""
Guildhall - task lifecycle and reward resolution engine.

Players start timed activities (crafting, gathering, adventuring) that are
claimed later and resolved into inventory, skill experience and rank changes.
The engine is storage-backed and stateless between requests; see
`guildhall.engine.GameEngine` for the operations exposed to request handlers.
"""

__version__ = "1.0.0"
