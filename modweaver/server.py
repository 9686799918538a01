# modweaver/server.py
from __future__ import annotations

import logging

from modweaver.app.factory import createApp
from modweaver.app.settings import settings

# Basic logging setup, replaced by configureLogging() inside createApp()
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


app = createApp()



def run() -> None:
    import uvicorn
    uvicorn.run(app, host=str(settings("http.host", "127.0.0.1")), port=int(settings("http.port", 7867)))



if __name__ == "__main__":
    run()
