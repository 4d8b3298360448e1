"""
Recognition service adapter.

Submits a still image to a freshly built engine and wraps the text in a
RecognitionResult. Concurrent calls never share an engine.
"""

from __future__ import annotations

import asyncio
import logging
import time

from errors import RecognitionFailed
from models.frame import StillImage
from models.recognition import RecognitionResult

from .backend import RecognitionOptions, RecognizerFactory


class RecognitionServiceAdapter:
    def __init__(self, factory: RecognizerFactory, options: RecognitionOptions = None):
        self._factory = factory
        self.options = options or RecognitionOptions()

    async def recognize(self, image: StillImage) -> RecognitionResult:
        """
        Recognize text in one still image.

        Raises:
            RecognitionFailed: The engine could not be built or raised.
        """
        try:
            engine = self._factory(self.options)
        except Exception as e:
            raise RecognitionFailed(f"Failed to create recognition engine: {e}") from e

        started = time.time()
        try:
            text = await asyncio.to_thread(engine.recognize_text, image)
        except Exception as e:
            raise RecognitionFailed(f"Recognition failed: {e}") from e
        finally:
            try:
                engine.close()
            except Exception as e:
                logging.warning(f"Error closing recognition engine: {e}")

        logging.debug(f"Recognition took {time.time() - started:.2f}s")
        return RecognitionResult(text=text or "", timestamp=time.time())
