"""Managers: content store, authorization guard, HTML sanitizers and logger factory."""
