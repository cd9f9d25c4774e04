from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.routes.mom import router as mom_router
from src.api.routes.transcripts import router as transcripts_router

app = FastAPI(
    title="Meeting Minutes API",
    description="Caption capture and minutes-of-meeting generation for video calls",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
    ],
    allow_origin_regex=r"https://.*\.vercel\.app|http://localhost:\d+",
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(transcripts_router)
app.include_router(mom_router)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}
