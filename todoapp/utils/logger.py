import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from todoapp.config import Settings


def setup_logging(settings: Settings, max_bytes: int = 10_000_000, backup_count: int = 5) -> logging.Logger:
    root = logging.getLogger()
    root.setLevel(getattr(logging, settings.LOG_LEVEL))

    formatter = logging.Formatter(settings.LOG_FORMAT, datefmt=settings.LOG_DATE_FORMAT)

    # Повторный вызов (reload, тесты) не должен дублировать обработчики
    for handler in list(root.handlers):
        if getattr(handler, "_todoapp", False):
            root.removeHandler(handler)
            handler.close()

    handlers: list = [logging.StreamHandler()]
    if settings.LOGS_DIR:
        log_dir = Path(settings.LOGS_DIR)
        log_dir.mkdir(exist_ok=True, parents=True)
        handlers.append(
            RotatingFileHandler(
                log_dir / "todoapp.log",
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
        )

    for handler in handlers:
        handler.setFormatter(formatter)
        handler._todoapp = True
        root.addHandler(handler)

    # Настройка логгеров внешних библиотек
    if not settings.DEBUG:
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    return root
