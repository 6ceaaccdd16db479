"""
Business logic for accounts, applications and reviews.
"""
