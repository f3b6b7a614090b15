"""
Grid Getters - rules engine for a two-player hex-grid wargame.
"""
