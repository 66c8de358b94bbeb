from chatbot.models.chat import Chat, Message, Stream, User, Vote
from chatbot.models.document import Document, Suggestion

__all__ = ["Chat", "Document", "Message", "Stream", "Suggestion", "User", "Vote"]
