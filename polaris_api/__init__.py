"""Polaris API - backend service for the WeChat mini-program."""

__version__ = "0.1.0"
