import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(app) -> None:
    """Gắn 1 stream handler cho root logger theo LOG_LEVEL trong config."""
    level = logging.getLevelName(str(app.config.get("LOG_LEVEL", "INFO")).upper())
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    if not any(getattr(h, "_procurement", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._procurement = True
        root.addHandler(handler)
    root.setLevel(level)
    app.logger.setLevel(level)
