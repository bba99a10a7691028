"""Declarative management of e-commerce platform event subscriptions."""

__version__ = "0.1.0"
