import logging
import os

import uvicorn


def main():
    host = os.environ.get("HOST", "127.0.0.1")
    port = int(os.environ.get("PORT", "8000"))
    reload = os.environ.get("RELOAD", "").lower() in {"1", "true", "yes"}
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper())
    uvicorn.run("kanjideck.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    main()
