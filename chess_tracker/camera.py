"""
Camera source backed by ``cv2.VideoCapture``.

Works with a device index (live webcam) or a path to a recorded video.
``read`` never raises: a failed grab simply yields ``None`` and the
frame loop skips that tick.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

import cv2
import numpy as np

log = logging.getLogger(__name__)


class OpenCVCamera:
    """Camera collaborator: hands out one BGR frame per call."""

    def __init__(
        self,
        source: Union[int, str] = 0,
        width: int = 640,
        height: int = 480,
    ) -> None:
        self.source = source
        self.width = width
        self.height = height
        self.cap: Optional[cv2.VideoCapture] = None

    def open(self) -> None:
        self.cap = cv2.VideoCapture(self.source)
        if not self.cap.isOpened():
            self.cap = None
            raise ValueError(f"Could not open video source: {self.source}")
        if isinstance(self.source, int):
            self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
            self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        log.info("Opened video source %s", self.source)

    def read(self) -> Optional[np.ndarray]:
        if self.cap is None:
            return None
        ok, frame = self.cap.read()
        if not ok or frame is None:
            return None
        if frame.shape[1] != self.width or frame.shape[0] != self.height:
            frame = cv2.resize(frame, (self.width, self.height))
        return frame

    def release(self) -> None:
        if self.cap is not None:
            self.cap.release()
            self.cap = None


def parse_source(value: str) -> Union[int, str]:
    """``"0"`` → device 0, anything else is treated as a file path / URL."""
    return int(value) if value.isdigit() else value
