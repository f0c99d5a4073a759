"""Contract drafting, review and revision under Indonesian law"""

__version__ = "0.1.0"
