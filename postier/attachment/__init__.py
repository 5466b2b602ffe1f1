"""Attachment commands."""
