"""Blog entrypoint.

Run with:
  python -m blog
"""

import logging
import os

import uvicorn


def main() -> None:
    logging.basicConfig(
        level=os.getenv("BLOG_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    host = os.getenv("BLOG_HOST", "0.0.0.0")
    port = int(os.getenv("BLOG_PORT", "8000"))
    reload = os.getenv("BLOG_RELOAD", "false").lower() in {"1", "true", "yes", "y"}
    uvicorn.run("blog.app:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    main()
