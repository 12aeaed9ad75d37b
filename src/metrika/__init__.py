"""Yandex Metrika reporting client with cache-aside request handling."""

__version__ = "0.1.0"
