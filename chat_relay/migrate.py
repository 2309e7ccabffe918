import logging
import os

from dotenv import load_dotenv
from yoyo import get_backend, read_migrations

logger = logging.getLogger(__name__)


def run_migrations(path: str = 'migrations'):
    load_dotenv()
    dburl = os.environ['DATABASE_URL']
    backend = get_backend(dburl)
    migrations = read_migrations(path)
    with backend.lock():
        to_apply = backend.to_apply(migrations)
        if to_apply:
            logger.info('[migrate] applying %d migration(s)', len(to_apply))
            backend.apply_migrations(to_apply)


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    run_migrations()
