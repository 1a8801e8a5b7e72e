"""Scripted traffic generator for the HTTP API."""

from .sim import ISim, Sim

__all__ = ["ISim", "Sim"]
