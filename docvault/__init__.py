"""
DocVault: personal document vault with expiry tracking and reminders
"""
__version__ = "1.0.0"
