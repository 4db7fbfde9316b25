import logging

# SSM first so Settings sees the injected values.
from studyquest.core.ssm import load_ssm_parameters
load_ssm_parameters()

from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI

from studyquest.api.routes.quiz import router as quiz_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = FastAPI(title="StudyQuest Quiz Generation API")


@app.get("/health", tags=["health"])
def health_check():
    return {"status": "ok"}


app.include_router(quiz_router)
