"""
Scanner input pipeline.

One ``ScannerPipeline`` owns one camera. ``start_capture`` opens it and
starts a polling task that reads a frame, tries to decode it and sleeps
``frame_interval`` before the next one. The first decoded payload ends the
session: the camera is released and the state set to ``DECODED`` before the
result callback runs, so a session never reports two codes. Manual entry
goes straight to the same callback.

State machine::

    IDLE --start_capture--> CAPTURING --decode--> DECODED
                                |
                                +--stop_capture--> IDLE
"""

import asyncio
from enum import Enum
from typing import Any, Awaitable, Callable

from verifyme import config
from verifyme.errors import EmptyInput, VerifyMeError
from verifyme.scanner.camera import Camera
from verifyme.scanner.decoder import decode_frame as qr_decode
from verifyme.utils.logger import get_logger

logger = get_logger(__name__)

ResultCallback = Callable[[str], Awaitable[Any]]
Decoder = Callable[[Any], "str | None"]


class ScannerState(str, Enum):
    IDLE = "idle"
    CAPTURING = "capturing"
    DECODED = "decoded"


class ScannerPipeline:

    def __init__(
        self,
        camera: Camera,
        on_result: ResultCallback,
        decoder: Decoder = qr_decode,
        frame_interval: float = None,
    ):
        self.camera = camera
        self.on_result = on_result
        self.decoder = decoder
        self.frame_interval = config.SCAN_FRAME_INTERVAL if frame_interval is None else frame_interval

        self.state = ScannerState.IDLE
        self._generation = 0
        self.last_payload: str | None = None
        self.last_error: Exception | None = None
        self._task: asyncio.Task | None = None
        self._start_lock = asyncio.Lock()

    @property
    def is_capturing(self) -> bool:
        return self.state == ScannerState.CAPTURING

    async def start_capture(self, facing_mode: str = "environment"):
        """Open the camera and start the decode loop for a fresh session"""
        # one open at a time: overlapping starts would share the device
        async with self._start_lock:
            # only one decode loop per pipeline
            self.stop_capture()

            self._generation += 1
            session = self._generation
            self.last_payload = None
            self.last_error = None

            # camera errors propagate to the caller; nothing is retried
            await asyncio.to_thread(self.camera.open, facing_mode)

            if session != self._generation:
                # stop_capture() ran while the device was opening
                self.camera.release()
                return

            self.state = ScannerState.CAPTURING
            self._task = asyncio.create_task(self._decode_loop(session))
            logger.info("Capture session %s started (%s)", session, facing_mode)

    def _active(self, session: int) -> bool:
        return self.state == ScannerState.CAPTURING and session == self._generation

    async def _decode_loop(self, session: int):
        while self._active(session):
            try:
                frame = await asyncio.to_thread(self.camera.read)
            except Exception as e:
                logger.warning("Frame read error: %s", e)
                frame = None

            if not self._active(session):
                break

            if frame is not None:
                try:
                    await self.decode_frame(frame)
                except Exception as e:
                    if self.state == ScannerState.DECODED:
                        # the result callback failed, the session is over
                        self.last_error = e
                        if isinstance(e, VerifyMeError) and e.status_code < 500:
                            logger.info("Scan not accepted: %s (%s)", e.message, e.code)
                        else:
                            logger.error("Scan result handling failed: %s", e, exc_info=True)
                        return
                    logger.warning("QR detection error: %s", e)

            if not self._active(session):
                break
            await asyncio.sleep(self.frame_interval)

    async def decode_frame(self, frame) -> str | None:
        """Decode one frame; on success end the session and deliver the text"""
        if self.state != ScannerState.CAPTURING:
            return None

        session = self._generation
        text = await asyncio.to_thread(self.decoder, frame)
        if not text or not self._active(session):
            return None

        self.stop_capture()
        self.state = ScannerState.DECODED
        self.last_payload = text
        logger.info("QR Code detected: %s", text[:60])
        await self.on_result(text)
        return text

    def stop_capture(self):
        """Release the camera and cancel the decode loop; idempotent"""
        task, self._task = self._task, None
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()

        self._generation += 1
        self.camera.release()
        if self.state == ScannerState.CAPTURING:
            self.state = ScannerState.IDLE
            logger.info("Capture stopped")

    async def submit_manual_text(self, text: str):
        if text is None or not text.strip():
            raise EmptyInput()
        return await self.on_result(text)

    async def close(self):
        self.stop_capture()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
