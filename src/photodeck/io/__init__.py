"""Filesystem and image helpers used by the local gateway."""
