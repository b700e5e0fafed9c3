import logging

from aiohttp import web

from . import config, logging_setup
from .server import create_app

_log = logging.getLogger(__name__)


def run():
    logging_setup.setup_logging()
    _log.info("Starting clanboard API on %s:%s", config.SERVER_BIND, config.SERVER_PORT)
    web.run_app(
        create_app(),
        host=config.SERVER_BIND,
        port=config.SERVER_PORT,
        access_log=logging.getLogger("aiohttp.access") if config.ACCESS_LOG_ENABLED else None,
        print=None,
    )


if __name__ == "__main__":
    run()
