# detailing/models/base.py
"""Shared declarative base for all booking tables"""
from sqlalchemy.orm import declarative_base

Base = declarative_base()
