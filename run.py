import logging
import os

import uvicorn

from reviewcrawl.api.server import create_app
from reviewcrawl.container import Container

logger = logging.getLogger(__name__)


def main(container=None):
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if container is None:
        container = Container()

    app = create_app(container)
    host = container.config.API_HOST() or "0.0.0.0"
    port = container.config.API_PORT() or 8000
    logger.info("ReviewCrawl API listening on %s:%s", host, port)
    uvicorn.run(app, host=host, port=int(port))


if __name__ == '__main__':
    main()
