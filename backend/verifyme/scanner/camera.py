"""
Camera access for the scan desk.

``Camera`` is the contract the pipeline needs: open with a facing-mode
preference, read frames, release. ``OpenCVCamera`` implements it on
``cv2.VideoCapture`` and reports the three failure kinds separately so the
admin sees why the scanner did not start.
"""

import os
import sys
import threading
from abc import ABC, abstractmethod

import cv2

from verifyme import config
from verifyme.errors import CameraUnavailable, NoDeviceFound, PermissionDenied
from verifyme.utils.logger import get_logger

logger = get_logger(__name__)

FACING_MODES = ("environment", "user")


def _worse(current, new):
    # a refused device explains more than a missing fallback device
    if isinstance(current, PermissionDenied):
        return current
    return new


class Camera(ABC):

    @abstractmethod
    def open(self, facing_mode: str = "environment") -> None:
        """Acquire the device; raises CameraUnavailable, PermissionDenied or NoDeviceFound"""

    @abstractmethod
    def read(self):
        """Next frame, or None when no frame is ready"""

    @abstractmethod
    def release(self) -> None:
        """Stop the stream; safe to call repeatedly"""

    @property
    @abstractmethod
    def is_open(self) -> bool:
        ...


class OpenCVCamera(Camera):

    def __init__(self, rear_index: int = None, front_index: int = None,
                 enabled: bool = None):
        self.rear_index = config.CAMERA_REAR_INDEX if rear_index is None else rear_index
        self.front_index = config.CAMERA_FRONT_INDEX if front_index is None else front_index
        self.enabled = config.CAMERA_ENABLED if enabled is None else enabled
        self._capture = None
        self._lock = threading.Lock()

    def _candidate_indexes(self, facing_mode: str) -> list[int]:
        # facing mode is a preference: fall back to the other device
        if facing_mode == "user":
            order = [self.front_index, self.rear_index]
        else:
            order = [self.rear_index, self.front_index]
        return list(dict.fromkeys(order))

    @staticmethod
    def _check_device_node(index: int):
        if not sys.platform.startswith("linux"):
            return
        path = f"/dev/video{index}"
        if not os.path.exists(path):
            raise NoDeviceFound(path)
        if not os.access(path, os.R_OK | os.W_OK):
            raise PermissionDenied(path)

    def open(self, facing_mode: str = "environment") -> None:
        if not self.enabled or not hasattr(cv2, "VideoCapture"):
            raise CameraUnavailable()
        if facing_mode not in FACING_MODES:
            raise ValueError(f"Unknown facing mode '{facing_mode}'")

        self.release()
        last_error = None
        for index in self._candidate_indexes(facing_mode):
            try:
                self._check_device_node(index)
            except (NoDeviceFound, PermissionDenied) as e:
                last_error = _worse(last_error, e)
                continue

            capture = cv2.VideoCapture(index)
            if not capture.isOpened():
                capture.release()
                last_error = _worse(last_error, NoDeviceFound(f"camera index {index}"))
                continue

            capture.set(cv2.CAP_PROP_FRAME_WIDTH, config.CAMERA_FRAME_WIDTH)
            capture.set(cv2.CAP_PROP_FRAME_HEIGHT, config.CAMERA_FRAME_HEIGHT)
            with self._lock:
                previous, self._capture = self._capture, capture
                # a concurrent open may have installed a handle meanwhile
                if previous is not None:
                    previous.release()
            logger.info("Camera %s opened (%s)", index, facing_mode)
            return

        raise last_error or NoDeviceFound()

    def read(self):
        with self._lock:
            if self._capture is None:
                return None
            ok, frame = self._capture.read()
        return frame if ok else None

    def release(self) -> None:
        with self._lock:
            capture, self._capture = self._capture, None
        if capture is not None:
            capture.release()
            logger.info("Camera released")

    @property
    def is_open(self) -> bool:
        return self._capture is not None
