"""
Tesseract recognition engine.

Blocking; the adapter runs it in a worker thread.
"""

from __future__ import annotations

import logging
from typing import Optional

import cv2
import numpy as np
import pytesseract

from models.frame import StillImage

from .backend import RecognitionOptions, TextRecognizer

_ROTATIONS = {
    90: cv2.ROTATE_90_CLOCKWISE,
    180: cv2.ROTATE_180,
    270: cv2.ROTATE_90_COUNTERCLOCKWISE,
}


class TesseractRecognizer(TextRecognizer):
    def __init__(self, options: RecognitionOptions):
        self.options = options
        self._lang = "+".join(sorted(options.languages)) or "eng"
        self._closed = False

    def recognize_text(self, image: StillImage) -> str:
        if self._closed:
            raise RuntimeError("Recognizer is closed")
        frame = image.decode()
        gray = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
        if self.options.auto_rotate:
            gray = self._deskew_rotation(gray)
        return pytesseract.image_to_string(gray, lang=self._lang).strip()

    def _deskew_rotation(self, gray: np.ndarray) -> np.ndarray:
        try:
            osd = pytesseract.image_to_osd(gray, output_type=pytesseract.Output.DICT)
        except pytesseract.TesseractError as e:
            # OSD needs enough text to decide; no decision means no rotation.
            logging.debug(f"Orientation detection skipped: {e}")
            return gray
        rotate = int(osd.get("rotate", 0)) % 360
        if rotate in _ROTATIONS:
            return cv2.rotate(gray, _ROTATIONS[rotate])
        return gray

    def close(self) -> None:
        self._closed = True


def tesseract_factory(tesseract_cmd: Optional[str] = None):
    """
    Build a RecognizerFactory producing TesseractRecognizer instances.

    `tesseract_cmd` points pytesseract at a non-default binary. It is
    process-wide and set once, here.
    """
    if tesseract_cmd:
        pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        logging.info(f"Using tesseract binary {tesseract_cmd}")

    def factory(options: RecognitionOptions) -> TesseractRecognizer:
        return TesseractRecognizer(options)
    return factory
