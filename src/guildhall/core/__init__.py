"""
Core infrastructure for Guildhall.

Configuration, logging, persistence, clock and randomness. Nothing in this
package knows about game rules.
"""
