"""Prompt optimizer gateway."""
