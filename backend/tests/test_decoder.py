import io

import numpy as np
import pytest
from PIL import Image

from verifyme.errors import CameraUnavailable, NoCodeDetected, NoDeviceFound, PermissionDenied
from verifyme.scanner.camera import OpenCVCamera
from verifyme.scanner.decoder import decode_frame, decode_image_bytes
from verifyme.utils.qr_generator import generate_qr_png, make_qr_image

RECORD_ID = "Kx9QmT2vLp8RzA4bNc7D"


def png_bytes(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def test_decodes_generated_qr_frame():
    # OpenCV frames are BGR
    frame = np.ascontiguousarray(np.array(make_qr_image(RECORD_ID))[:, :, ::-1])

    assert decode_frame(frame) == RECORD_ID


def test_frame_without_code_decodes_to_none():
    frame = np.full((240, 320, 3), 255, dtype=np.uint8)

    assert decode_frame(frame) is None
    assert decode_frame(None) is None


def test_decodes_uploaded_png():
    assert decode_image_bytes(generate_qr_png(RECORD_ID)) == RECORD_ID


def test_blank_image_has_no_code():
    with pytest.raises(NoCodeDetected):
        decode_image_bytes(png_bytes(Image.new("RGB", (200, 200), "white")))


def test_non_image_bytes_have_no_code():
    with pytest.raises(NoCodeDetected):
        decode_image_bytes(b"definitely not an image")


def test_disabled_camera_is_unavailable():
    camera = OpenCVCamera(enabled=False)

    with pytest.raises(CameraUnavailable):
        camera.open()
    assert not camera.is_open


def test_unknown_facing_mode_is_rejected():
    with pytest.raises(ValueError):
        OpenCVCamera(enabled=True).open("sideways")


@pytest.mark.parametrize("facing_mode, expected", [
    ("environment", [0, 1]),
    ("user", [1, 0]),
])
def test_facing_mode_prefers_its_device(facing_mode, expected):
    camera = OpenCVCamera(rear_index=0, front_index=1, enabled=True)

    assert camera._candidate_indexes(facing_mode) == expected


def test_single_device_is_tried_once():
    camera = OpenCVCamera(rear_index=0, front_index=0, enabled=True)

    assert camera._candidate_indexes("user") == [0]


def test_permission_denied_outranks_missing_fallback(monkeypatch):
    def check(index):
        if index == 0:
            raise PermissionDenied(f"/dev/video{index}")
        raise NoDeviceFound(f"/dev/video{index}")

    monkeypatch.setattr(OpenCVCamera, "_check_device_node", staticmethod(check))
    camera = OpenCVCamera(rear_index=0, front_index=1, enabled=True)

    with pytest.raises(PermissionDenied):
        camera.open("environment")


def test_no_devices_is_not_found(monkeypatch):
    def check(index):
        raise NoDeviceFound(f"/dev/video{index}")

    monkeypatch.setattr(OpenCVCamera, "_check_device_node", staticmethod(check))

    with pytest.raises(NoDeviceFound):
        OpenCVCamera(enabled=True).open("user")


def test_release_without_open_is_safe():
    camera = OpenCVCamera(enabled=False)
    camera.release()
    camera.release()

    assert camera.read() is None
