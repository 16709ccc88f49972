# survey_insights/api/deps/llm.py
from fastapi import HTTPException, Request
from openai import AsyncOpenAI


def get_llm_client(request: Request) -> AsyncOpenAI:
    """
    The OpenAI-compatible client built at startup. 503 when no API key was
    configured.
    """
    client = getattr(request.app.state, "llm", None)
    if client is None:
        raise HTTPException(status_code=503, detail="AI analysis is not configured")
    return client
