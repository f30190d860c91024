"""Run the message board with uvicorn: python -m ventspace"""

import uvicorn

from ventspace.config import settings


def main() -> None:
    # log_config=None keeps the JSON handlers installed by setup_logging
    uvicorn.run(
        "ventspace.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_config=None,
    )


if __name__ == "__main__":
    main()
