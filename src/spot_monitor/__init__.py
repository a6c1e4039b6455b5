"""Spot Monitor: day-ahead electricity price monitor and usage advisor."""

try:
    from importlib.metadata import version as _pkg_version
    __version__ = _pkg_version("spot-monitor")
except Exception:
    __version__ = "dev"
