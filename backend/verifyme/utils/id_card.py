"""Printable student ID card rendered with Pillow"""

import io

from PIL import Image, ImageDraw, ImageFont, ImageOps

from verifyme.models.students import StudentRecord
from verifyme.utils.logger import get_logger
from verifyme.utils.qr_generator import make_qr_image

logger = get_logger(__name__)

# === CARD STYLE ===
CARD_WIDTH, CARD_HEIGHT = 640, 400
HEADER_HEIGHT = 56
HEADER_COLOR = (37, 99, 235)
BG_COLOR = (255, 255, 255)
TEXT_DARK = (30, 41, 59)
TEXT_MUTED = (100, 116, 139)
BORDER_COLOR = (226, 232, 240)
PHOTO_SIZE = (120, 120)
QR_SIZE = 130


def _load_fonts():
    try:
        return (
            ImageFont.truetype("DejaVuSans-Bold.ttf", 22),
            ImageFont.truetype("DejaVuSans.ttf", 14),
            ImageFont.truetype("DejaVuSans-Bold.ttf", 16),
        )
    except OSError:
        default = ImageFont.load_default()
        return default, default, default


def _photo_tile(photo_bytes: bytes | None) -> Image.Image:
    if photo_bytes:
        try:
            with Image.open(io.BytesIO(photo_bytes)) as photo:
                return ImageOps.fit(photo.convert("RGB"), PHOTO_SIZE)
        except OSError as e:
            logger.warning("Failed to load student photo: %s", e)
    placeholder = Image.new("RGB", PHOTO_SIZE, (241, 245, 249))
    ImageDraw.Draw(placeholder).text((38, 52), "PHOTO", fill=TEXT_MUTED)
    return placeholder


def render_id_card(student: StudentRecord, photo_bytes: bytes | None = None) -> bytes:
    """PNG bytes of the ID card: photo, QR of the record id and student details"""
    font_title, font_label, font_value = _load_fonts()

    card = Image.new("RGB", (CARD_WIDTH, CARD_HEIGHT), BG_COLOR)
    draw = ImageDraw.Draw(card)

    # header
    draw.rectangle([(0, 0), (CARD_WIDTH, HEADER_HEIGHT)], fill=HEADER_COLOR)
    draw.text((24, 15), "University ID Card", font=font_title, fill="white")
    valid_until = f"Valid until: 12/{student.created_at.year + 1}"
    l, t, r, b = draw.textbbox((0, 0), valid_until, font=font_label)
    draw.text((CARD_WIDTH - 24 - (r - l), 21), valid_until, font=font_label, fill="white")

    # photo and QR column
    left_x, top_y = 32, HEADER_HEIGHT + 24
    card.paste(_photo_tile(photo_bytes), (left_x, top_y))
    draw.rectangle(
        [(left_x - 1, top_y - 1), (left_x + PHOTO_SIZE[0], top_y + PHOTO_SIZE[1])],
        outline=BORDER_COLOR, width=2,
    )
    qr = make_qr_image(student.id, box_size=4, border=2).resize((QR_SIZE, QR_SIZE), Image.NEAREST)
    card.paste(qr, (left_x - 5, top_y + PHOTO_SIZE[1] + 16))

    # details column
    text_x = left_x + PHOTO_SIZE[0] + 48
    y = top_y
    draw.text((text_x, y), student.full_name, font=font_title, fill=TEXT_DARK)
    draw.text((text_x, y + 30), student.faculty, font=font_label, fill=TEXT_MUTED)
    y += 70
    for label, value in (
        ("Matric Number", student.matric_number),
        ("Department", student.department),
        ("Student ID", student.id),
    ):
        draw.text((text_x, y), label, font=font_label, fill=TEXT_MUTED)
        draw.text((text_x, y + 18), value, font=font_value, fill=TEXT_DARK)
        y += 52

    # footer
    footer_y = CARD_HEIGHT - 40
    draw.line([(24, footer_y - 10), (CARD_WIDTH - 24, footer_y - 10)], fill=BORDER_COLOR, width=2)
    draw.text((24, footer_y), "Student ID", font=font_label, fill=HEADER_COLOR)
    note = "Scan QR to verify authenticity"
    l, t, r, b = draw.textbbox((0, 0), note, font=font_label)
    draw.text((CARD_WIDTH - 24 - (r - l), footer_y), note, font=font_label, fill=TEXT_MUTED)

    buffer = io.BytesIO()
    card.save(buffer, format="PNG")
    return buffer.getvalue()
