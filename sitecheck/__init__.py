__version__ = "0.1.0"


def get_logging_config(loglevel):
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {"format": "%(asctime)s [%(levelname)s] %(threadName)s %(name)s: %(message)s"},
        },
        "handlers": {
            "default": {
                "level": loglevel,
                "formatter": "standard",
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
            },
        },
        "loggers": {
            "": {"handlers": ["default"], "level": loglevel, "propagate": False},
            "sitecheck": {"handlers": ["default"], "level": loglevel, "propagate": False},
        },
    }
