"""Recruitment backend: applicant registration, applications and department reviews."""

__version__ = "1.0.0"
