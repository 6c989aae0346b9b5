"""Viewer session state machine, geometry and gesture helpers."""
