"""
Logger lookup for cloudlayer.

Backends log under ``cloudlayer.backend.<type>``, streams under
``cloudlayer.streams`` and the router under ``cloudlayer.router``.
``cloudlayer.setup_logging`` tunes all of them at once.
"""

import logging


def get_logger(name: str) -> logging.Logger:
    """
    Return the logger called ``name``.
    
    Records always propagate, so an application's ``basicConfig`` sees
    them. Until the root logger has a handler the level is WARNING, which
    keeps per-chunk DEBUG output quiet in library use.
    """
    logger = logging.getLogger(name)
    logger.propagate = True
    if not logging.getLogger().handlers:
        logger.setLevel(logging.WARNING)
    return logger
