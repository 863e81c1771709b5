"""Test package for the adaptive trainer.

These tests drive generators, sequencers and reducers headlessly with
seeded random sources and a fake clock, so every run is deterministic.  To
run them, execute ``pytest`` from the project root.
"""
