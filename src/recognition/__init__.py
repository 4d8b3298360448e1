"""
Text recognition: engine interface, Tesseract engine and the async adapter
used by the scan cycle controller.
"""

from .adapter import RecognitionServiceAdapter
from .backend import RecognitionOptions, RecognizerFactory, TextRecognizer

__all__ = [
    "RecognitionServiceAdapter",
    "RecognitionOptions",
    "RecognizerFactory",
    "TextRecognizer",
]
