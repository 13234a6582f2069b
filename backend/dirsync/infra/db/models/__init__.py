"""Database models for the directory sync service"""
from .config import AppConfigValue
from .identity import DirectoryUser
