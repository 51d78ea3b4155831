# src/hltrader/core/errors.py
from __future__ import annotations


class HlTraderError(Exception):
    """Base error for hltrader."""


class ConfigError(HlTraderError):
    """Startup configuration is missing or malformed."""


class ExchangeError(HlTraderError):
    """
    Exchange refused a hard step (leverage update, cancel)
    or returned a payload that cannot be interpreted.
    """
