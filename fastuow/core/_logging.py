import logging
import os
from typing import Optional

from uvicorn.logging import DefaultFormatter

LOG_LEVEL_ENV = "FASTUOW_LOG_LEVEL"


def get_logger(name: str, log_level: Optional[int] = None) -> logging.Logger:
    """``uvicorn`` 포맷터가 설정된 로거를 리턴합니다.

    `log_level` 이 없으면 ``FASTUOW_LOG_LEVEL`` 환경변수(예: ``DEBUG``)를 보고,
    그것도 없으면 ``INFO`` 레벨을 사용합니다.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        if log_level is None:
            log_level = logging.getLevelName(os.environ.get(LOG_LEVEL_ENV, "INFO"))
            if not isinstance(log_level, int):
                log_level = logging.INFO
        logger.setLevel(log_level)
        ch = logging.StreamHandler()
        ch.setFormatter(DefaultFormatter(fmt="%(levelprefix)s %(message)s"))
        logger.addHandler(ch)

    return logger
