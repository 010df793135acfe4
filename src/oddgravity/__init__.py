"""
Odd Gravity: a one-button gravity-flip arcade game.
"""

__version__ = "1.0.0"
