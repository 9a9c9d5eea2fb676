"""
Logging configuration.
Uvicorn ve gateway logger seviyeleri. Satırlar iş parçacığı adını taşır (settlement-scheduler,
settlement_0 ...) ki arka plan settlement kayıtları istek kayıtlarından ayrılsın.
"""
import logging
import sys


def setup_logging(
    level: int | str = logging.INFO,
    format_string: str | None = None,
) -> None:
    if format_string is None:
        format_string = "%(asctime)s [%(levelname)s] %(name)s [%(threadName)s]: %(message)s"
    logging.basicConfig(
        level=level,
        format=format_string,
        stream=sys.stdout,
        force=True,
    )
    # Uvicorn loggers: access ve error seviyelerini uyumlu tut
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        log = logging.getLogger(name)
        if level is not None:
            log.setLevel(level)
    logging.getLogger("gateway").setLevel(level)
    # SQL echo yalnızca açıkça istenirse
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
