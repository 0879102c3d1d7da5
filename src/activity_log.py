import os
from datetime import datetime
from pathlib import Path

LOG_PATH = Path(os.getenv("ESTACAO_LOG_PATH", "logs/dashboard.log"))


def log(msg: str) -> None:
    ts = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    line = f"{ts} | {msg}"
    print(line, flush=True)
    try:
        LOG_PATH.parent.mkdir(parents=True, exist_ok=True)
        with LOG_PATH.open("a", encoding="utf-8") as f:
            f.write(line + "\n")
    except OSError:
        # read-only deployments still get stdout
        pass
