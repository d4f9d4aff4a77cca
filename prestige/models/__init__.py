"""
Prestige Ledger
SQLAlchemy extension instance shared by every model module.

Usage:
    from prestige.models import db
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
