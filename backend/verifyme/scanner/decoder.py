"""QR decoding for camera frames and uploaded still images"""

import cv2
import numpy as np

from verifyme.errors import NoCodeDetected


def decode_frame(frame) -> str | None:
    """Decoded QR text in ``frame`` (BGR or grayscale array), or None"""
    if frame is None or getattr(frame, "size", 0) == 0:
        return None

    detector = cv2.QRCodeDetector()
    data, points, _ = detector.detectAndDecode(frame)
    if points is not None and data:
        return data

    # low-contrast prints read better after equalisation
    gray = frame if frame.ndim == 2 else cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
    data, points, _ = detector.detectAndDecode(cv2.equalizeHist(gray))
    if points is not None and data:
        return data
    return None


def decode_image_bytes(content: bytes) -> str:
    """Decode the QR code in an encoded image (PNG, JPEG, ...)"""
    buffer = np.frombuffer(content, dtype=np.uint8)
    image = cv2.imdecode(buffer, cv2.IMREAD_COLOR) if buffer.size else None
    if image is None:
        raise NoCodeDetected()

    text = decode_frame(image)
    if not text:
        raise NoCodeDetected()
    return text
