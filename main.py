"""Entry point: `python main.py` serves the API with uvicorn."""

import os

from deckly.config.environment import IS_PRODUCTION_ENVIRONMENT
from deckly.utils.logging_config import setup_logging
from deckly.api import create_application

setup_logging()
app = create_application()

if __name__ == "__main__":
    import uvicorn

    port = int(os.environ.get('PORT', '8000'))

    if IS_PRODUCTION_ENVIRONMENT:
        # Workers need the import string, not the app object
        uvicorn.run(
            "main:app",
            host="0.0.0.0",
            port=port,
            workers=int(os.environ.get('WEB_CONCURRENCY', '4')),
            log_level="info",
            proxy_headers=True,
            forwarded_allow_ips="*"
        )
    else:
        uvicorn.run("main:app", host="127.0.0.1", port=port, reload=True, log_level="debug")
