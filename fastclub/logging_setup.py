"""
Configurazione dei log (loguru)
"""
import sys
from pathlib import Path

from loguru import logger

from .config import get_settings

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def configure_logging(level: str | None = None) -> None:
    """Sostituisce il sink di default con console + file giornaliero"""
    settings = get_settings()
    level = level or settings.log_level

    logger.remove()
    logger.add(sys.stderr, format=LOG_FORMAT, level=level)

    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    logger.add(
        str(log_dir / "fastclub_{time:YYYY-MM-DD}.log"),
        rotation="1 day",
        retention="30 days",
        level="DEBUG"
    )
