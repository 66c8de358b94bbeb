import uvicorn

from chatbot.core.config import settings

if __name__ == "__main__":
    uvicorn.run("chatbot.main:app", host=settings.host, port=settings.port, reload=settings.debug)
