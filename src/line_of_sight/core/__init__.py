"""Core terrain, sky and line-of-sight components."""
