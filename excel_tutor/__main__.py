from __future__ import annotations

import uvicorn

from excel_tutor.config import configure_logging, log_level, server_host, server_port


def main() -> None:
    configure_logging()
    uvicorn.run("excel_tutor.main:app", host=server_host(), port=server_port(), log_level=log_level().lower())


if __name__ == "__main__":
    main()
