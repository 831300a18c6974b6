# Run from project root: uvicorn nova_agent.main:app --reload --port 8787

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from nova_agent.api.routes import router
from nova_agent.core.config import CORS_ORIGINS, PORT

logging.basicConfig(level=logging.INFO)


app = FastAPI(title="Nova Agent Backend")
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS or ["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["content-type", "x-demo-api-key"],
)
app.include_router(router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("nova_agent.main:app", host="0.0.0.0", port=PORT)
