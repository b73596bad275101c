import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

def configure_logging(level: str = "INFO"):
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    # sqlalchemy has its own echo flag
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
