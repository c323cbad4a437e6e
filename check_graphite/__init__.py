"""Graphite threshold check plugin for Nagios/op5."""

__version__ = "1.0.0"
