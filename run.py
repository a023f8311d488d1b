import os

import uvicorn

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8000))
    # The engine is pure and stateless, so workers can be scaled freely.
    workers = int(os.environ.get("WEB_CONCURRENCY", 1))
    uvicorn.run(
        "spokecalc.main:app",
        host="0.0.0.0",
        port=port,
        workers=workers,
    )
