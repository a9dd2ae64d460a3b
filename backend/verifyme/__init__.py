"""VerifyMe - student ID registration and QR verification service"""

__version__ = "1.0.0"
