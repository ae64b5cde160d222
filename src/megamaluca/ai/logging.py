"""AI generation archive for Mega Sena Maluca.

Saves every AI-generated commentary and image to a structured log
directory with metadata.
"""

import json
import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Optional, Dict, Any

logger = logging.getLogger(__name__)

DEFAULT_LOG_DIR = Path.cwd() / "megamaluca_ai_logs"


class AILogger:
    """Writes AI generations to disk.

    Layout:
    <log_dir>/
    ├── YYYY-MM-DD/
    │   ├── text/
    │   │   └── commentary_HHMMSS_uuid.json
    │   ├── images/
    │   │   └── celebration_HHMMSS_uuid.png
    │   └── metadata/
    │       └── celebration_HHMMSS_uuid_meta.json
    """

    def __init__(self, log_dir: Optional[Path] = None):
        self.log_dir = Path(log_dir or DEFAULT_LOG_DIR)
        logger.info(f"AILogger writing to {self.log_dir}")

    def _get_day_dir(self) -> Path:
        """Get today's log directory, creating its subfolders."""
        day_dir = self.log_dir / datetime.now().strftime("%Y-%m-%d")
        for subdir in ("text", "images", "metadata"):
            (day_dir / subdir).mkdir(parents=True, exist_ok=True)
        return day_dir

    def _generate_id(self) -> str:
        """Generate unique ID for log entries."""
        return f"{datetime.now().strftime('%H%M%S')}_{uuid.uuid4().hex[:8]}"

    def log_text_generation(
        self,
        category: str,
        prompt: str,
        response: str,
        model: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Log a text generation result.

        Args:
            category: Type of generation (commentary, ...)
            prompt: The prompt sent to AI
            response: AI's response text
            model: Model used for generation
            metadata: Additional context data

        Returns:
            Log entry ID, or "" if writing failed
        """
        try:
            entry_id = self._generate_id()
            day_dir = self._get_day_dir()

            log_entry = {
                "id": entry_id,
                "timestamp": datetime.now().isoformat(),
                "category": category,
                "model": model,
                "prompt": prompt,
                "response": response,
                "metadata": metadata or {},
            }

            filepath = day_dir / "text" / f"{category}_{entry_id}.json"
            with open(filepath, "w", encoding="utf-8") as f:
                json.dump(log_entry, f, ensure_ascii=False, indent=2)

            logger.debug(f"Logged text generation: {filepath}")
            return entry_id

        except OSError as e:
            logger.error(f"Failed to log text generation: {e}")
            return ""

    def log_image_generation(
        self,
        category: str,
        image_data: bytes,
        prompt: Optional[str] = None,
        model: str = "unknown",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Log an image generation result.

        Args:
            category: Type of image (celebration, edit)
            image_data: Generated image bytes
            prompt: The prompt used for generation
            model: Model used for generation
            metadata: Additional context data

        Returns:
            Log entry ID, or "" if writing failed
        """
        try:
            entry_id = self._generate_id()
            day_dir = self._get_day_dir()

            img_filename = f"{category}_{entry_id}.png"
            (day_dir / "images" / img_filename).write_bytes(image_data)

            meta_entry = {
                "id": entry_id,
                "timestamp": datetime.now().isoformat(),
                "category": category,
                "model": model,
                "prompt": prompt,
                "image_file": img_filename,
                "metadata": metadata or {},
            }

            meta_filepath = day_dir / "metadata" / f"{category}_{entry_id}_meta.json"
            with open(meta_filepath, "w", encoding="utf-8") as f:
                json.dump(meta_entry, f, ensure_ascii=False, indent=2)

            logger.debug(f"Logged image generation: {img_filename}")
            return entry_id

        except OSError as e:
            logger.error(f"Failed to log image generation: {e}")
            return ""


_ai_logger: Optional[AILogger] = None


def get_ai_logger(log_dir: Optional[Path] = None) -> AILogger:
    """Get the shared AILogger instance (log_dir only used on first call)."""
    global _ai_logger
    if _ai_logger is None:
        _ai_logger = AILogger(log_dir)
    return _ai_logger
