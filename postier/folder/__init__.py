"""Folder domain: sync strategies and folder command handlers."""
