"""
==============================================================================
Scanner Package - QR input for the verification desk
==============================================================================

Camera acquisition (OpenCV), QR decoding and the capture pipeline that
hands decoded text to the identifier resolver.

Classes:
--------
- Camera / OpenCVCamera: device access with facing-mode preference
- ScannerPipeline: capture session and cooperative decode loop
- ScanDesk: the server-attached scanner used by the admin API

==============================================================================
"""

from .camera import Camera, OpenCVCamera
from .desk import ScanDesk
from .pipeline import ScannerPipeline, ScannerState

__all__ = ["Camera", "OpenCVCamera", "ScanDesk", "ScannerPipeline", "ScannerState"]
