"""python -m shiksha: run the API server."""

import uvicorn

from shiksha.config import HOST, PORT, LOG_LEVEL, configure_logging


def main():
    configure_logging()
    uvicorn.run("shiksha.main:app", host=HOST, port=PORT, log_level=LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
