"""MeetPoint client core: REST gateway client and authentication session."""

__version__ = "1.0.0"
