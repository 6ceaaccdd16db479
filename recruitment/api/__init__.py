"""
Recruitment API Routers
FastAPI router modules for the recruitment backend.
"""
from recruitment.api import admin, answers, applications, auth, health, questions, reviewer, users

__all__ = [
    "admin",
    "answers",
    "applications",
    "auth",
    "health",
    "questions",
    "reviewer",
    "users",
]
