import os

from dotenv import load_dotenv
from fastapi import FastAPI

from cachecast.api.api_v1 import router as api_v1
from cachecast.core.config import settings
from cachecast.core.lifespan import lifespan

load_dotenv()  # Load .env variables into os.environ for libraries


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)


@app.get("/")
def root():
    return {"message": "Hello from cachecast!", "pid": os.getpid()}


app.include_router(api_v1)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("cachecast.main:app", host="0.0.0.0", port=8000, workers=4)
