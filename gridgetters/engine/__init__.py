"""
Grid Getters rules engine.
Pure game rules: no web framework, no persistence, no rendering.
"""

DIE_SIDES = 6

# Odds beyond the last column of the outcome table turn into a roll bonus.
MAX_ODDS_COLUMN = 6
MAX_ROLL_COLUMN = 6
