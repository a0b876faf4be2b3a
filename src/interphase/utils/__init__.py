"""Utility helpers for interphase."""
