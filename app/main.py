# app/main.py
import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings

# === Import Routers ===
from app.api.spotify_auth_api import router as spotify_auth_router   # OAuth login / callback / token
from app.api.spotify_proxy_api import router as spotify_proxy_router  # Spotify Web API proxy

app = FastAPI(
    title="Spotify Web Player Backend",
    description=(
        "Backend for: "
        "• Spotify OAuth (Authorization Code) "
        "• Cookie-based token refresh "
        "• Spotify Web API proxy for the browser player"
    ),
    version="1.0.0"
)

# === CORS Middleware ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,       # cookie 要跟著送
    allow_methods=["*"],
    allow_headers=["*"],
)

# === Spotify OAuth ===
app.include_router(spotify_auth_router, tags=["Spotify OAuth"])

# === Spotify Web API Proxy ===
app.include_router(spotify_proxy_router, prefix="/api", tags=["Spotify Proxy"])

@app.get("/")
def root():
    return {
        "status": "ok",
        "message": "Spotify Web Player backend running"
    }


def run():
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    run()
