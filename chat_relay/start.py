import os

import uvicorn

from chat_relay.migrate import run_migrations
from chat_relay.settings import settings

if __name__ == '__main__':
    if not settings.USE_INMEMORY_REPO:
        run_migrations()
    uvicorn.run(
        'chat_relay.main:app',
        host='0.0.0.0',
        port=int(os.getenv('PORT', '8000')),
    )
