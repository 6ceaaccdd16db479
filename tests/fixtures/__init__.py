"""
Recruitment Test Fixtures Package
Test doubles and helpers shared across test modules.
"""
