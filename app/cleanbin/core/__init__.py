"""Cleanup engine for cleanbin.

Validation, classification, traversal, preview, deletion and the
orchestrator that sequences them.
"""
