import io

import qrcode
from qrcode.constants import ERROR_CORRECT_H


def make_qr_image(data: str, box_size: int = 10, border: int = 4):
    """QR code image (PIL) encoding ``data``; high error correction for printed cards"""
    qr = qrcode.QRCode(
        version=None,
        error_correction=ERROR_CORRECT_H,
        box_size=box_size,
        border=border,
    )
    qr.add_data(data)
    qr.make(fit=True)
    return qr.make_image(fill_color="black", back_color="white").convert("RGB")


def generate_qr_png(student_id: str) -> bytes:
    """PNG bytes of the QR code carrying the bare record id"""
    buffer = io.BytesIO()
    make_qr_image(student_id).save(buffer, format="PNG")
    return buffer.getvalue()
