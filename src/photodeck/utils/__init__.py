"""Utility helpers for photodeck."""
