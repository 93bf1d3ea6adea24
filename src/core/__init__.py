"""Core domain package for epilink.

Core contains rule evaluation, privacy decisions and notification composing
without any Discord or storage-specific code, keeping the business logic
portable.
"""
