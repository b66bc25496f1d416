"""LC Revision: spaced-repetition scheduling service for solved problems."""

__version__ = "0.1.0"
