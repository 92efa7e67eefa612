"""
Core Module

Foundational components: configuration, logging, exceptions and interfaces.
"""
