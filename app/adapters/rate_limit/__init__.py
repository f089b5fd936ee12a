"""Rate limiting adapters.

Two fixed-window stores sit behind one interface: a per-process in-memory
counter and a counter table in the hosted backend.
"""
