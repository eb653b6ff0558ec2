from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.services.stego_codec.main import router as codec_router
from src.services.stego_codec.api.routes import stats
from src.utility.constants_manager import ConstantsManager

constants = ConstantsManager()

# Configure logging
logging.basicConfig(level=constants.get_log_level())
logger = logging.getLogger(__name__)


app = FastAPI(title="Stego Vault", version="1.0.0")

app.add_middleware(
        CORSMiddleware,
        allow_origins=constants.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(codec_router)


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/stats")
async def get_stats():
    return stats.snapshot()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000)
