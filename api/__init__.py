"""Pantry inventory API: public gateway and sheet-backed inventory backend."""
