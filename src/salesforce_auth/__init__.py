"""Salesforce single sign-on bridge."""

__version__ = "1.0.0"
